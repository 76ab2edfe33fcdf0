from django.core.exceptions import PermissionDenied


class DomainError(Exception):
    """Error de reglas de negocio."""

    codigo = "DOMAIN_ERROR"

    def __init__(self, mensaje: str = ""):
        super().__init__(mensaje)
        self.mensaje = mensaje

    def as_dict(self) -> dict:
        return {"ok": False, "codigo": self.codigo, "error": self.mensaje}


class NoEncontradoError(DomainError):
    codigo = "NOT_FOUND"


class EstadoInvalidoError(DomainError):
    codigo = "INVALID_STATE"


class DatosInvalidosError(DomainError):
    codigo = "VALIDATION_ERROR"


class CantidadInvalidaError(DatosInvalidosError):
    pass


class NoAutorizadoError(DomainError, PermissionDenied):
    codigo = "UNAUTHORIZED"
