from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from bodega.domain.exceptions import CantidadInvalidaError, DatosInvalidosError
from bodega.domain.rules import a_entero, require_role
from bodega.models import Espacio, Movimiento, TipoMovimiento, UserProfile
from bodega.repositories.sku_repo import obtener_sku
from bodega.repositories.stock_repo import get_stock_para_actualizar
from bodega.services.movimiento_service import nuevo_movimiento, registrar_movimientos

logger = logging.getLogger(__name__)

INCREMENTAR = "incrementar"
DECREMENTAR = "decrementar"
ESTABLECER = "establecer"
MODOS = (INCREMENTAR, DECREMENTAR, ESTABLECER)


@dataclass(frozen=True)
class AjusteResultado:
    movimiento: Movimiento
    stock_anterior: int
    stock_nuevo: int

    @property
    def delta(self) -> int:
        return self.stock_nuevo - self.stock_anterior


def _magnitud(valor) -> int:
    if valor is None or valor == "":
        raise DatosInvalidosError("La magnitud del ajuste es obligatoria.")
    n = a_entero(valor, "La magnitud del ajuste", error=DatosInvalidosError)
    if n < 0:
        raise DatosInvalidosError("La magnitud del ajuste no puede ser negativa.")
    return n


@transaction.atomic
def aplicar_ajuste(
    sku_codigo: str,
    modo: str,
    magnitud,
    razon: str,
    usuario,
    *,
    espacio: str = Espacio.BODEGA,
    observaciones: str = "",
) -> AjusteResultado:
    """
    Ajuste manual de stock (solo superadmin).
      incrementar: +magnitud
      decrementar: -magnitud
      establecer:  deja el stock en magnitud
    Escribe un único movimiento 'ajuste' con su razón.
    """
    require_role(usuario, UserProfile.Rol.SUPERADMIN)

    if modo not in MODOS:
        raise DatosInvalidosError(f"Modo de ajuste inválido: {modo}")
    if espacio not in Espacio.values:
        raise DatosInvalidosError(f"Espacio inválido: {espacio}")
    razon = (razon or "").strip()
    if not razon:
        raise DatosInvalidosError("El ajuste requiere una razón.")
    n = _magnitud(magnitud)

    sku = obtener_sku(sku_codigo, solo_activos=False)

    # 🔒 Leer el saldo bloqueado para que 'establecer' calcule el delta correcto
    stock = get_stock_para_actualizar(sku.codigo, espacio, sku.nombre)
    actual = stock.cantidad

    if modo == INCREMENTAR:
        delta = n
    elif modo == DECREMENTAR:
        delta = -n
    else:
        delta = n - actual

    if delta == 0:
        raise CantidadInvalidaError(f"El ajuste no cambia el stock de {sku.codigo} (queda en {actual}).")

    mov = nuevo_movimiento(
        tipo=TipoMovimiento.AJUSTE,
        sku_codigo=sku.codigo,
        sku_nombre=sku.nombre,
        cantidad=delta,
        usuario=usuario,
        espacio=espacio,
        ahora=timezone.now(),
        razon=razon,
        observaciones=(observaciones or "").strip(),
    )
    registrar_movimientos([mov])

    logger.info(
        "Ajuste %s %s @ %s: %s -> %s (%s)",
        modo,
        sku.codigo,
        espacio,
        mov.stock_anterior,
        mov.stock_nuevo,
        razon,
    )
    return AjusteResultado(movimiento=mov, stock_anterior=mov.stock_anterior, stock_nuevo=mov.stock_nuevo)
