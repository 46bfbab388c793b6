class ExternalServiceError(Exception):
    """Falha ao falar com um serviço externo (rede, status inesperado, resposta inválida)"""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


class LookupNotFoundError(ExternalServiceError):
    def __init__(self, message: str):
        super().__init__(message, status_code=404)


class InvalidLookupInputError(ExternalServiceError):
    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class RateLimitedError(ExternalServiceError):
    def __init__(self, message: str = "Limite de requisições excedido. Tente novamente em alguns instantes."):
        super().__init__(message, status_code=429)
