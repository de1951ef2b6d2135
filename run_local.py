#!/usr/bin/env python3
"""
Script para rodar a API localmente
"""
import uvicorn
from comex_crm.config.settings import settings

def main():
    print("🚀 Iniciando Comex CRM localmente...")
    print("="*50)
    print("📡 URLs Locais:")
    print(f"   • API: http://localhost:{settings.api_port}")
    print(f"   • Documentação: http://localhost:{settings.api_port}/docs")
    print(f"   • Banco: {settings.database_url.split('@')[-1]}")
    print("="*50)
    print()
    
    uvicorn.run(
        "comex_crm.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level=settings.log_level.lower()
    )

if __name__ == "__main__":
    main()
