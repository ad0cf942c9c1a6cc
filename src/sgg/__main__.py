"""Ponto de entrada para execução do módulo como script."""

import logging
import sys

import uvicorn

from .api import create_app
from .config import Config


def main():
    """Sobe o servidor HTTP do gateway."""
    try:
        config = Config()
    except ValueError as e:
        print(f"Erro de configuração: {e}", file=sys.stderr)
        sys.exit(1)

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"Gateway ouvindo em http://{config.host}:{config.port}")
    print(f"Contas de serviço: {len(config.service_account_keys)}")
    print("Pressione Ctrl+C para parar\n")

    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
