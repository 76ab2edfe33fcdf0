from __future__ import annotations

import logging
from dataclasses import dataclass, field

from django.db import transaction
from django.utils import timezone

from bodega.domain.exceptions import (
    CantidadInvalidaError,
    DatosInvalidosError,
    EstadoInvalidoError,
    NoEncontradoError,
)
from bodega.domain.rules import (
    ROLES_VALIDADORES,
    DetalleCBU,
    cantidad_con_signo,
    es_vale_sucio,
    nombre_actor,
    require_role,
)
from bodega.models import Correlativo, EstadoVale, Espacio, Lote, Movimiento, TipoVale, Vale, ValeDetalle
from bodega.repositories.sku_repo import obtener_sku
from bodega.services import lote_service
from bodega.services.movimiento_service import nuevo_movimiento, registrar_movimientos

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValidacionResultado:
    vale: Vale
    movimientos: list[Movimiento] = field(default_factory=list)
    lote: Lote | None = None

    @property
    def movimiento_ids(self) -> list[int]:
        return [m.pk for m in self.movimientos]

    @property
    def lote_id(self):
        return self.lote.pk if self.lote else None


def _get_vale_para_actualizar(vale_id) -> Vale:
    try:
        return Vale.objects.select_for_update().get(pk=vale_id)
    except (Vale.DoesNotExist, ValueError, TypeError):
        raise NoEncontradoError(f"Vale no encontrado: {vale_id}") from None


def _texto(valor) -> str:
    return (valor or "").strip()


# ============================================================
# Crear
# ============================================================
@transaction.atomic
def crear_vale(
    *,
    tipo: str,
    origen_id: str = "",
    origen_nombre: str,
    destino_id: str = "",
    destino_nombre: str,
    detalles,
    usuario,
    pabellon_id: str = "",
    pabellon_nombre: str = "",
    comentario: str = "",
) -> Vale:
    """
    Crea un vale PENDIENTE. No escribe movimientos ni toca stock.
    detalles: [{"sku": "BLA 1ERA", "cajas": 10, "bandejas": 0, "unidades": 0}, ...]
    """
    require_role(usuario)

    if tipo not in TipoVale.values:
        raise DatosInvalidosError(f"Tipo de vale inválido: {tipo}")
    if not _texto(origen_nombre):
        raise DatosInvalidosError("El vale requiere origen.")
    if not _texto(destino_nombre):
        raise DatosInvalidosError("El vale requiere destino.")

    detalles = list(detalles or [])
    if not detalles:
        raise DatosInvalidosError("No puedes crear un vale sin detalles.")

    lineas = []
    vistos = set()
    for d in detalles:
        if not isinstance(d, dict):
            raise DatosInvalidosError("Cada detalle debe ser un objeto.")
        sku = obtener_sku(d.get("sku") or d.get("sku_codigo") or "")
        if sku.codigo in vistos:
            raise DatosInvalidosError(f"SKU repetido en el vale: {sku.codigo}")
        vistos.add(sku.codigo)

        cbu = DetalleCBU.desde_sku(sku, d.get("cajas"), d.get("bandejas"), d.get("unidades"))
        if cbu.total_unidades <= 0:
            raise CantidadInvalidaError(f"{sku.codigo}: el total de unidades debe ser mayor a 0.")
        lineas.append((sku, cbu))

    ahora = timezone.now()
    local = timezone.localtime(ahora)
    fecha = local.date()

    vale = Vale(
        tipo=tipo,
        estado=EstadoVale.PENDIENTE,
        fecha=fecha,
        hora=local.time().replace(second=0, microsecond=0),
        origen_id=_texto(origen_id),
        origen_nombre=_texto(origen_nombre),
        destino_id=_texto(destino_id),
        destino_nombre=_texto(destino_nombre),
        pabellon_id=_texto(pabellon_id),
        pabellon_nombre=_texto(pabellon_nombre),
        comentario=_texto(comentario),
        correlativo_dia=Correlativo.siguiente(f"{tipo}:{fecha.isoformat()}"),
        numero_global=Correlativo.siguiente(Correlativo.GLOBAL),
        creado_por=usuario,
        creado_por_nombre=nombre_actor(usuario),
    )
    vale.full_clean()
    vale.save()

    for sku, cbu in lineas:
        ValeDetalle.objects.create(
            vale=vale,
            sku_codigo=sku.codigo,
            sku_nombre=sku.nombre,
            cajas=cbu.cajas,
            bandejas=cbu.bandejas,
            unidades=cbu.unidades,
            total_unidades=cbu.total_unidades,
        )

    logger.info("Vale %s creado (%s) por %s", vale.referencia, vale.pk, vale.creado_por_nombre)
    return vale


# ============================================================
# Validar
# ============================================================
def _marcar_revisado(vale: Vale, estado: str, usuario, ahora, observaciones: str):
    vale.estado = estado
    vale.validado_por = usuario
    vale.validado_por_nombre = nombre_actor(usuario)
    vale.validado_en = ahora
    vale.observaciones = observaciones
    vale.full_clean()
    vale.save(update_fields=[
        "estado",
        "validado_por",
        "validado_por_nombre",
        "validado_en",
        "observaciones",
        "actualizado_en",
    ])


@transaction.atomic
def validar_vale(vale_id, usuario, observaciones: str = "") -> ValidacionResultado:
    """
    Valida un vale pendiente. Todo ocurre en una transacción: estado del vale,
    movimientos y snapshots. Un vale sucio crea su lote en Sala L en vez de
    sumar a bodega.
    """
    require_role(usuario, *ROLES_VALIDADORES)

    # 🔒 Bloquear el vale: un segundo validador concurrente ve el estado ya cambiado
    vale = _get_vale_para_actualizar(vale_id)
    if not vale.es_pendiente:
        raise EstadoInvalidoError(f"El vale {vale.referencia} no está pendiente (estado: {vale.estado}).")

    detalles = list(vale.detalles.order_by("id"))
    if not detalles:
        raise DatosInvalidosError("No puedes validar un vale sin detalles.")

    sucio = es_vale_sucio(vale, detalles)
    ahora = timezone.now()
    _marcar_revisado(vale, EstadoVale.VALIDADO, usuario, ahora, _texto(observaciones))

    if sucio:
        lote, movimientos = lote_service.crear_lote_desde_vale(vale, detalles[0], usuario, ahora)
        logger.info("Vale sucio %s validado -> lote %s", vale.referencia, lote.lote_codigo)
        return ValidacionResultado(vale=vale, movimientos=movimientos, lote=lote)

    movimientos = []
    for d in detalles:
        if d.total_unidades <= 0:
            raise CantidadInvalidaError(f"{d.sku_codigo}: el total de unidades debe ser mayor a 0.")
        movimientos.append(
            nuevo_movimiento(
                tipo=vale.tipo,
                sku_codigo=d.sku_codigo,
                sku_nombre=d.sku_nombre,
                cantidad=cantidad_con_signo(vale.tipo, d.total_unidades),
                usuario=usuario,
                espacio=Espacio.BODEGA,
                ahora=ahora,
                vale=vale,
                origen_nombre=vale.origen_nombre,
                destino_nombre=vale.destino_nombre,
            )
        )
    registrar_movimientos(movimientos)

    logger.info("Vale %s validado: %s movimientos", vale.referencia, len(movimientos))
    return ValidacionResultado(vale=vale, movimientos=movimientos)


# ============================================================
# Rechazar
# ============================================================
@transaction.atomic
def rechazar_vale(vale_id, usuario, observaciones: str) -> Vale:
    """Rechaza un vale pendiente. Nunca escribe movimientos."""
    require_role(usuario, *ROLES_VALIDADORES)

    observaciones = _texto(observaciones)
    if not observaciones:
        raise DatosInvalidosError("Las observaciones son obligatorias para rechazar un vale.")

    vale = _get_vale_para_actualizar(vale_id)
    if not vale.es_pendiente:
        raise EstadoInvalidoError(f"El vale {vale.referencia} no está pendiente (estado: {vale.estado}).")

    _marcar_revisado(vale, EstadoVale.RECHAZADO, usuario, timezone.now(), observaciones)

    logger.info("Vale %s rechazado por %s", vale.referencia, vale.validado_por_nombre)
    return vale
