"""
Busca-ou-cria de contrapartes (cliente, exportador, importador, produtor) pelo nome
"""
import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from comex_crm.models.crm_models import ENTITY_MODELS
from comex_crm.services.exceptions import MissingRequiredField

logger = logging.getLogger(__name__)


class EntityResolver:
    """Resolve nomes de contrapartes em ids, criando o registro no primeiro uso"""

    def __init__(self, db: Session):
        self.db = db

    def get_or_create(self, entity_type: str, name: Optional[str]) -> str:
        """
        Retorna o id da entidade com exatamente esse nome (sensível a maiúsculas)

        Se não existir, cria dentro de um SAVEPOINT. Em corrida com outra
        importação a constraint UNIQUE dispara e a busca é refeita.
        """
        model = ENTITY_MODELS.get(entity_type)
        if model is None:
            raise ValueError(f"Tipo de entidade desconhecido: {entity_type}")

        name = (name or "").strip()
        if not name:
            raise MissingRequiredField(entity_type)

        existing_id = self._find_id(entity_type, name)
        if existing_id:
            return existing_id

        entity = model(name=name)
        try:
            with self.db.begin_nested():
                self.db.add(entity)
                self.db.flush()
        except IntegrityError:
            existing_id = self._find_id(entity_type, name)
            if existing_id is None:
                raise
            logger.info(f"🔁 {entity_type} '{name}' criado por outra importação, reutilizando {existing_id}")
            return existing_id

        logger.info(f"➕ {entity_type} criado: '{name}' ({entity.id})")
        return entity.id

    def get(self, entity_type: str, entity_id: str):
        model = ENTITY_MODELS[entity_type]
        return self.db.query(model).filter(model.id == entity_id).first()

    def _find_id(self, entity_type: str, name: str) -> Optional[str]:
        model = ENTITY_MODELS[entity_type]
        row = self.db.query(model.id).filter(model.name == name).first()
        return row[0] if row else None
