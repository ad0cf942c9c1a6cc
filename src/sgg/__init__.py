"""
SGG Sheet Gateway

Gateway HTTP sobre o Google Sheets: busca por coordenada, leitura de coluna e
entrega da próxima linha não usada de uma aba, com rotação de contas de serviço.

Este módulo expõe as principais peças para uso externo:

- Config: Configuração do gateway
- create_app: Fábrica da aplicação FastAPI
"""

from .__version__ import __version__
from .api import create_app
from .config import Config

__all__ = [
    '__version__',
    'Config',
    'create_app',
]
