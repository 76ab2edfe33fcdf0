from __future__ import annotations

import logging

from django.db import transaction
from django.utils import timezone

from bodega.domain.exceptions import CantidadInvalidaError, DatosInvalidosError
from bodega.domain.rules import nombre_actor, signo_valido
from bodega.models import Espacio, Movimiento, TipoMovimiento
from bodega.repositories.stock_repo import get_stock, get_stock_para_actualizar

logger = logging.getLogger(__name__)


def nuevo_movimiento(
    *,
    tipo: str,
    sku_codigo: str,
    sku_nombre: str,
    cantidad: int,
    usuario=None,
    espacio: str = Espacio.BODEGA,
    ahora=None,
    vale=None,
    lote=None,
    origen_nombre: str = "",
    destino_nombre: str = "",
    razon: str = "",
    observaciones: str = "",
) -> Movimiento:
    """Arma un movimiento sin guardar. Se persiste con registrar_movimientos()."""
    ahora = ahora or timezone.now()
    local = timezone.localtime(ahora)

    mov = Movimiento(
        tipo=tipo,
        espacio=espacio,
        sku_codigo=sku_codigo,
        sku_nombre=sku_nombre,
        cantidad=int(cantidad),
        fecha=local.date(),
        hora=local.time().replace(second=0, microsecond=0),
        origen_nombre=origen_nombre or "",
        destino_nombre=destino_nombre or "",
        razon=razon or "",
        observaciones=observaciones or "",
        usuario=usuario,
        usuario_nombre=nombre_actor(usuario) if usuario else "",
        creado_en=ahora,
    )
    if vale is not None:
        mov.vale = vale
        mov.vale_referencia = vale.referencia
        mov.vale_estado = vale.estado
    if lote is not None:
        mov.lote = lote
        mov.lote_codigo = lote.lote_codigo
    return mov


@transaction.atomic
def registrar_movimientos(movimientos) -> list[Movimiento]:
    """
    Agrega movimientos al kardex y actualiza el snapshot de stock de cada
    (espacio, SKU) en la misma transacción. No hay clamping a cero.
    """
    movimientos = list(movimientos)

    for mov in movimientos:
        if mov.tipo not in TipoMovimiento.values:
            raise DatosInvalidosError(f"Tipo de movimiento inválido: {mov.tipo}")
        if not mov.sku_codigo:
            raise DatosInvalidosError("El movimiento requiere SKU.")
        if not signo_valido(mov.tipo, mov.cantidad):
            raise CantidadInvalidaError(
                f"Cantidad {mov.cantidad} no respeta el signo de un movimiento '{mov.tipo}'."
            )
        if mov.tipo == TipoMovimiento.AJUSTE and not mov.razon.strip():
            raise DatosInvalidosError("Un ajuste requiere razón.")

    stocks = {}
    for mov in movimientos:
        key = (mov.espacio, mov.sku_codigo)
        stock = stocks.get(key)
        if stock is None:
            stock = get_stock_para_actualizar(mov.sku_codigo, mov.espacio, mov.sku_nombre)
            stocks[key] = stock

        mov.stock_anterior = stock.cantidad
        stock.cantidad += mov.cantidad
        mov.stock_nuevo = stock.cantidad
        mov.save()

        if mov.sku_nombre:
            stock.sku_nombre = mov.sku_nombre
        stock.actualizado_en_operacion = mov.creado_en

    for stock in stocks.values():
        stock.save(update_fields=["cantidad", "sku_nombre", "actualizado_en_operacion", "actualizado_en"])
        if stock.cantidad < 0:
            logger.warning("Stock negativo %s @ %s = %s", stock.sku_codigo, stock.espacio, stock.cantidad)

    logger.debug("Registrados %s movimientos", len(movimientos))
    return movimientos


def obtener_stock(sku_codigo: str, espacio: str = Espacio.BODEGA) -> int:
    stock = get_stock(sku_codigo, espacio)
    return int(stock.cantidad) if stock else 0


def historial_movimientos(
    *,
    sku_codigo: str | None = None,
    vale_id=None,
    lote_id=None,
    espacio: str | None = None,
    tipo: str | None = None,
    desde=None,
    hasta=None,
    ascendente: bool = False,
):
    """
    Historial del kardex por SKU, vale o lote. Más reciente primero salvo
    ascendente=True. Es solo lectura.
    """
    if not (sku_codigo or vale_id or lote_id):
        raise DatosInvalidosError("Indica un SKU, un vale o un lote.")

    qs = Movimiento.objects.all()
    if sku_codigo:
        qs = qs.filter(sku_codigo=sku_codigo)
    if vale_id:
        qs = qs.filter(vale_id=vale_id)
    if lote_id:
        qs = qs.filter(lote_id=lote_id)
    if espacio:
        qs = qs.filter(espacio=espacio)
    if tipo:
        qs = qs.filter(tipo=tipo)
    if desde:
        qs = qs.filter(fecha__gte=desde)
    if hasta:
        qs = qs.filter(fecha__lte=hasta)

    if ascendente:
        return qs.order_by("creado_en", "id")
    return qs.order_by("-creado_en", "-id")
