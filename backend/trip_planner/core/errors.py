# backend/trip_planner/core/errors.py

from typing import Optional


# ---------------------------------------------------------------------------
# BASE
# ---------------------------------------------------------------------------
class TripPlannerError(Exception):
    """
    Base error for every failure the HTTP layer knows how to report.

    `message` is the internal description (logged); `user_message` is the
    short text returned to the caller as {"error": ...}.
    """

    status_code: int = 500
    default_user_message: str = "Erro interno. Tente novamente mais tarde."

    def __init__(self, message: str = "", user_message: Optional[str] = None):
        super().__init__(message or self.default_user_message)
        self.user_message = user_message or self.default_user_message


# ---------------------------------------------------------------------------
# CLIENT ERRORS
# ---------------------------------------------------------------------------
class Unauthorized(TripPlannerError):
    status_code = 401
    default_user_message = "Não autorizado"


class InvalidRequest(TripPlannerError):
    status_code = 400
    default_user_message = "Requisição inválida"

    def __init__(self, message: str):
        # validation messages are safe to show as-is
        super().__init__(message, user_message=message)


class NotFound(TripPlannerError):
    status_code = 404
    default_user_message = "Registro não encontrado"


# ---------------------------------------------------------------------------
# SERVER / CONFIG ERRORS
# ---------------------------------------------------------------------------
class ConfigurationError(TripPlannerError):
    status_code = 500
    default_user_message = "Serviço de IA não configurado"


class UnsupportedProviderError(TripPlannerError):
    status_code = 500
    default_user_message = "Provedor de IA não suportado"

    def __init__(self, provider_name: str):
        super().__init__(f"Unsupported provider: {provider_name!r}")
        self.provider_name = provider_name


# ---------------------------------------------------------------------------
# PROVIDER ERRORS
# ---------------------------------------------------------------------------
class RateLimited(TripPlannerError):
    status_code = 429
    default_user_message = "Muitas requisições. Por favor, aguarde alguns instantes e tente novamente."


class InsufficientCredits(TripPlannerError):
    status_code = 402
    default_user_message = (
        "Limite de créditos de IA atingido. Adicione créditos ou entre em contato com o suporte."
    )


class ProviderError(TripPlannerError):
    status_code = 502
    default_user_message = "Falha ao consultar o serviço de IA. Tente novamente."

    def __init__(self, status: int, message: str = ""):
        super().__init__(message or f"Provider returned HTTP {status}")
        self.status = status


class MalformedOutputError(TripPlannerError):
    status_code = 502
    default_user_message = "Erro ao processar resposta da IA. Por favor, tente novamente."

    EXCERPT_LENGTH = 500

    def __init__(self, message: str, raw_text: Optional[str] = None):
        super().__init__(message)
        self.excerpt = (raw_text or "")[: self.EXCERPT_LENGTH]


class NetworkError(TripPlannerError):
    status_code = 503
    default_user_message = "Não foi possível conectar ao serviço de IA. Verifique sua conexão e tente novamente."
