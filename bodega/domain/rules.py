from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal, InvalidOperation

from django.conf import settings

from bodega.models import EstadoVale, TipoMovimiento, TipoVale, UserProfile
from .exceptions import CantidadInvalidaError, DatosInvalidosError, NoAutorizadoError

# ============================================================
# Roles
# ============================================================
ROLES_VALIDADORES = (
    UserProfile.Rol.SUPERADMIN,
    UserProfile.Rol.ADMIN,
    UserProfile.Rol.SUPERVISOR,
)


def require_role(user, *roles):
    profile = getattr(user, "profile", None)
    if not profile:
        raise NoAutorizadoError("Usuario sin perfil (UserProfile).")
    if roles and profile.rol not in roles:
        raise NoAutorizadoError("No tienes permisos para esta acción.")
    return profile


def nombre_actor(user) -> str:
    profile = getattr(user, "profile", None)
    if profile:
        return profile.nombre
    return user.get_full_name() or user.get_username()


# ============================================================
# SKUs de Sala L
# ============================================================
# sucio -> lavado (sin calibrar)
SKUS_SUCIOS = {
    "BLA MAN": "BLA SINCAL",
    "COL MAN": "COL SINCAL",
}
SKU_DESECHO = "DES"


def es_sku_sucio(codigo: str) -> bool:
    return codigo in SKUS_SUCIOS


def sku_lavado_desde_sucio(codigo: str) -> str:
    try:
        return SKUS_SUCIOS[codigo]
    except KeyError:
        raise DatosInvalidosError(f"{codigo} no es un SKU sucio.") from None


def es_vale_sucio(vale, detalles) -> bool:
    """
    Vale sucio = ingreso pendiente con exactamente 1 detalle cuyo SKU es BLA MAN o COL MAN.
    Se evalúa al validar, nunca se guarda.
    """
    if vale.tipo != TipoVale.INGRESO:
        return False
    if vale.estado != EstadoVale.PENDIENTE:
        return False
    if len(detalles) != 1:
        return False
    return es_sku_sucio(detalles[0].sku_codigo)


def generar_lote_codigo(fecha: date, correlativo_dia: int) -> str:
    # Ej: SL-2026-01-14-ING-08
    return f"SL-{fecha.isoformat()}-ING-{int(correlativo_dia or 0):02d}"


# ============================================================
# Convención de signos del kardex
# ============================================================
def cantidad_con_signo(tipo: str, total_unidades: int) -> int:
    total = abs(int(total_unidades))
    if tipo == TipoMovimiento.EGRESO:
        return -total
    return total


def signo_valido(tipo: str, cantidad: int) -> bool:
    if tipo in (TipoMovimiento.INGRESO, TipoMovimiento.REINGRESO):
        return cantidad > 0
    if tipo == TipoMovimiento.EGRESO:
        return cantidad < 0
    if tipo == TipoMovimiento.AJUSTE:
        return cantidad != 0
    return False


def signo_corregido(tipo: str, cantidad: int) -> int:
    """Cantidad normalizada según el tipo. Ajustes se devuelven tal cual."""
    if tipo in (TipoMovimiento.INGRESO, TipoMovimiento.REINGRESO):
        return abs(cantidad)
    if tipo == TipoMovimiento.EGRESO:
        return -abs(cantidad)
    return cantidad


# ============================================================
# Cajas / Bandejas / Unidades
# ============================================================
def a_entero(valor, campo: str, error=CantidadInvalidaError) -> int:
    """Entero exacto: 2, "2" y 2.0 valen; 2.7 o "2.5" se rechazan (no se truncan)."""
    if isinstance(valor, bool):
        raise error(f"{campo} debe ser un entero.")
    try:
        d = Decimal(str(valor if valor not in (None, "") else 0).strip())
    except InvalidOperation:
        raise error(f"{campo} debe ser un entero.") from None
    if not d.is_finite() or d != d.to_integral_value():
        raise error(f"{campo} debe ser un entero.")
    return int(d)


def _no_negativo(valor, campo: str) -> int:
    n = a_entero(valor, campo)
    if n < 0:
        raise CantidadInvalidaError(f"{campo} no puede ser negativo.")
    return n


@dataclass(frozen=True)
class DetalleCBU:
    sku_codigo: str
    cajas: int
    bandejas: int
    unidades: int
    total_unidades: int

    @classmethod
    def desde_sku(cls, sku, cajas=0, bandejas=0, unidades=0) -> "DetalleCBU":
        c = _no_negativo(cajas, "cajas")
        b = _no_negativo(bandejas, "bandejas")
        u = _no_negativo(unidades, "unidades")
        return cls(
            sku_codigo=sku.codigo,
            cajas=c,
            bandejas=b,
            unidades=u,
            total_unidades=sku.total_unidades(c, b, u),
        )

    def as_dict(self) -> dict:
        return {
            "sku": self.sku_codigo,
            "cajas": self.cajas,
            "bandejas": self.bandejas,
            "unidades": self.unidades,
            "total_unidades": self.total_unidades,
        }


# ============================================================
# Desecho (kg -> unidades)
# ============================================================
REDONDEOS = {
    "round": ROUND_HALF_UP,
    "floor": ROUND_FLOOR,
    "ceil": ROUND_CEILING,
}


def gramos_por_unidad() -> int:
    return int(getattr(settings, "BODEGA_GRAMOS_POR_UNIDAD", 60))


def redondeo_por_defecto() -> str:
    return getattr(settings, "BODEGA_REDONDEO_DESECHO", "round")


def a_decimal(valor, campo: str) -> Decimal:
    try:
        d = Decimal(str(valor if valor not in (None, "") else 0))
    except InvalidOperation:
        raise CantidadInvalidaError(f"{campo} debe ser numérico.") from None
    if not d.is_finite():
        raise CantidadInvalidaError(f"{campo} debe ser numérico.")
    return d


def desecho_kg_a_unidades(desecho_kg, redondeo: str | None = None, gramos: int | None = None) -> int:
    """
    Convierte el desecho pesado (kg) a unidades equivalentes.
    Ej: 1.2 kg con 60 g/unidad -> 20 unidades.
    """
    modo = redondeo or redondeo_por_defecto()
    if modo not in REDONDEOS:
        raise DatosInvalidosError(f"Redondeo inválido: {modo}. Usa round, floor o ceil.")

    kg = a_decimal(desecho_kg, "desecho_kg")
    if kg <= 0:
        return 0

    g = Decimal(gramos or gramos_por_unidad())
    unidades = (kg * 1000) / g
    return int(unidades.quantize(Decimal("1"), rounding=REDONDEOS[modo]))


def porcentaje(parte: int, total: int) -> Decimal:
    if not total or total <= 0:
        return Decimal("0.00")
    return (Decimal(parte) * 100 / Decimal(total)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
