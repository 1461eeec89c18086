# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py custo-bom bom.xlsx --componentes componentes.xlsx
  python app.py custo-bom-api <bom_id> --quantidade 250
  python app.py kardex <product_id> --exportar ./exports
  python app.py contagem <product_id> 95
  python app.py progresso <order_id>
"""

from estoque_mrp.adapters.cli import main

if __name__ == "__main__":
    main()
