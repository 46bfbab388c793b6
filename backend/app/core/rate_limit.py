from slowapi import Limiter
from slowapi.util import get_remote_address

# Limite padrão por IP; consultas externas e IA têm limites próprios nas rotas
limiter = Limiter(key_func=get_remote_address, default_limits=["200/minute"])

LOOKUP_LIMIT = "30/minute"
ASSISTANT_LIMIT = "10/minute"
