"""
Application error taxonomy.

Services raise these instead of HTTPException so they stay usable outside
a request. The handlers registered in main.py turn them into JSON responses.
"""


class AppError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(AppError):
    status_code = 400
    message = "Dados inválidos."


class AuthenticationError(AppError):
    status_code = 401
    message = "Não autenticado."


class InvalidCredentials(AuthenticationError):
    # Single message for unknown email and wrong password
    message = "Email ou senha incorretos."


class AuthorizationError(AppError):
    status_code = 403
    message = "Acesso proibido."


class InvalidOrExpiredToken(AuthorizationError):
    message = "Token inválido ou expirado."


class NotFoundError(AppError):
    status_code = 404
    message = "Recurso não encontrado."


class ConflictError(AppError):
    status_code = 409
    message = "Registro já existe."


class InternalError(AppError):
    status_code = 500
