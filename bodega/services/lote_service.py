from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.utils import timezone

from bodega.domain.exceptions import (
    CantidadInvalidaError,
    DatosInvalidosError,
    EstadoInvalidoError,
    NoEncontradoError,
)
from bodega.domain.rules import (
    SKU_DESECHO,
    SKUS_SUCIOS,
    DetalleCBU,
    a_decimal,
    desecho_kg_a_unidades,
    es_sku_sucio,
    generar_lote_codigo,
    nombre_actor,
    porcentaje,
    require_role,
    sku_lavado_desde_sucio,
)
from bodega.models import Espacio, EstadoLote, Lote, LoteEvento, TipoMovimiento
from bodega.repositories.sku_repo import buscar_sku, obtener_sku
from bodega.repositories.stock_repo import get_stock_para_actualizar
from bodega.services.movimiento_service import nuevo_movimiento, registrar_movimientos

logger = logging.getLogger(__name__)

SALA_L_NOMBRE = "Sala L"
BODEGA_NOMBRE = "Bodega"

# Cada estado solo avanza al siguiente
SIGUIENTE_ESTADO = {
    EstadoLote.EN_SALA: EstadoLote.LAVADO_REGISTRADO,
    EstadoLote.LAVADO_REGISTRADO: EstadoLote.ENVIADO_A_CALIBRAR,
    EstadoLote.ENVIADO_A_CALIBRAR: EstadoLote.CERRADO,
    EstadoLote.CERRADO: EstadoLote.CALIBRADO_OK,
}


def _get_lote_para_actualizar(lote_id) -> Lote:
    try:
        return Lote.objects.select_for_update().get(pk=lote_id)
    except (Lote.DoesNotExist, ValueError, TypeError):
        raise NoEncontradoError(f"Lote no encontrado: {lote_id}") from None


def _exigir_estado(lote: Lote, destino: str):
    esperado = SIGUIENTE_ESTADO.get(lote.estado)
    if esperado != destino:
        raise EstadoInvalidoError(
            f"El lote {lote.lote_codigo} está en {lote.estado}; no puede pasar a {destino}."
        )


def _validar(lote: Lote):
    try:
        lote.full_clean(validate_unique=False)
    except ValidationError as e:
        raise DatosInvalidosError(f"Lote {lote.lote_codigo}: {'; '.join(e.messages)}") from None


def _evento(lote: Lote, tipo: str, usuario, datos: dict | None = None) -> LoteEvento:
    return LoteEvento.objects.create(
        lote=lote,
        tipo=tipo,
        datos=datos or {},
        usuario=usuario,
        usuario_nombre=nombre_actor(usuario) if usuario else "",
    )


# ============================================================
# Creación (desde validación de vale sucio)
# ============================================================
def crear_lote_desde_vale(vale, detalle, usuario, ahora=None):
    """
    Crea el lote de limpieza de un vale sucio y carga Sala L con el ingreso.
    Se llama dentro de la transacción de validar_vale().
    Retorna (lote, movimientos).
    """
    ahora = ahora or timezone.now()

    if detalle.total_unidades <= 0:
        raise CantidadInvalidaError("El ingreso a Sala L debe ser mayor a 0.")
    if Lote.objects.filter(pk=vale.pk).exists():
        raise EstadoInvalidoError(f"El vale {vale.referencia} ya tiene un lote de limpieza.")

    lote = Lote(
        vale=vale,
        lote_codigo=generar_lote_codigo(vale.fecha, vale.correlativo_dia),
        estado=EstadoLote.EN_SALA,
        vale_referencia=vale.referencia,
        fecha_vale=vale.fecha,
        correlativo_dia=vale.correlativo_dia,
        pabellon_id=vale.pabellon_id,
        pabellon_nombre=vale.pabellon_nombre,
        sku_codigo_sucio=detalle.sku_codigo,
        sku_nombre_sucio=detalle.sku_nombre,
        ingreso_cajas=detalle.cajas,
        ingreso_bandejas=detalle.bandejas,
        ingreso_unidades=detalle.unidades,
        ingreso_total=detalle.total_unidades,
        ingreso_sala_en=ahora,
    )
    _validar(lote)
    try:
        # savepoint: el IntegrityError no debe romper la transacción externa
        with transaction.atomic():
            lote.save(force_insert=True)
    except IntegrityError:
        raise EstadoInvalidoError(f"Ya existe un lote para el vale {vale.referencia}.") from None

    movimientos = registrar_movimientos([
        nuevo_movimiento(
            tipo=TipoMovimiento.INGRESO,
            sku_codigo=detalle.sku_codigo,
            sku_nombre=detalle.sku_nombre,
            cantidad=detalle.total_unidades,
            usuario=usuario,
            espacio=Espacio.SALA_L,
            ahora=ahora,
            vale=vale,
            lote=lote,
            origen_nombre=vale.origen_nombre,
            destino_nombre=SALA_L_NOMBRE,
        )
    ])

    _evento(lote, LoteEvento.LOTE_CREADO, usuario, {
        "vale_id": vale.pk,
        "vale_referencia": vale.referencia,
        "sku": detalle.sku_codigo,
        "ingreso_total": detalle.total_unidades,
    })

    logger.info("Lote %s creado en Sala L (%s u)", lote.lote_codigo, lote.ingreso_total)
    return lote, movimientos


# ============================================================
# Lavado
# ============================================================
@transaction.atomic
def registrar_lavado(
    lote_id,
    usuario,
    *,
    cajas=0,
    bandejas=0,
    unidades=0,
    desecho_kg=0,
    redondeo: str | None = None,
) -> Lote:
    require_role(usuario)

    lote = _get_lote_para_actualizar(lote_id)
    _exigir_estado(lote, EstadoLote.LAVADO_REGISTRADO)

    kg = a_decimal(desecho_kg, "desecho_kg").quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    if kg < 0:
        raise CantidadInvalidaError("desecho_kg no puede ser negativo.")

    sku_lavado = obtener_sku(sku_lavado_desde_sucio(lote.sku_codigo_sucio), solo_activos=False)
    lavado = DetalleCBU.desde_sku(sku_lavado, cajas, bandejas, unidades)
    if lavado.total_unidades <= 0:
        raise CantidadInvalidaError("El total lavado debe ser mayor a 0.")

    desecho_unidades = desecho_kg_a_unidades(kg, redondeo)

    lote.sku_codigo_lavado = sku_lavado.codigo
    lote.sku_nombre_lavado = sku_lavado.nombre
    lote.lavado_cajas = lavado.cajas
    lote.lavado_bandejas = lavado.bandejas
    lote.lavado_unidades = lavado.unidades
    lote.lavado_total = lavado.total_unidades
    lote.desecho_kg = kg
    lote.desecho_unidades = desecho_unidades
    lote.porcentaje_lavado = porcentaje(lavado.total_unidades, lote.ingreso_total)
    lote.porcentaje_desecho = porcentaje(desecho_unidades, lote.ingreso_total)
    lote.lavado_en = timezone.now()
    lote.estado = EstadoLote.LAVADO_REGISTRADO
    _validar(lote)
    lote.save()

    _evento(lote, LoteEvento.LAVADO_REGISTRADO, usuario, {
        "lavado": lavado.as_dict(),
        "desecho_kg": str(kg),
        "desecho_unidades": desecho_unidades,
        "porcentaje_lavado": str(lote.porcentaje_lavado),
        "porcentaje_desecho": str(lote.porcentaje_desecho),
    })

    if lavado.total_unidades + desecho_unidades > lote.ingreso_total:
        logger.warning(
            "Lote %s: lavado + desecho (%s) supera el ingreso (%s)",
            lote.lote_codigo,
            lavado.total_unidades + desecho_unidades,
            lote.ingreso_total,
        )
    logger.info(
        "Lote %s lavado: %s u, desecho %s kg = %s u",
        lote.lote_codigo,
        lavado.total_unidades,
        kg,
        desecho_unidades,
    )
    return lote


# ============================================================
# Enviar a calibrar
# ============================================================
@transaction.atomic
def enviar_a_calibrar(lote_id, usuario) -> Lote:
    require_role(usuario)

    lote = _get_lote_para_actualizar(lote_id)
    _exigir_estado(lote, EstadoLote.ENVIADO_A_CALIBRAR)

    lote.estado = EstadoLote.ENVIADO_A_CALIBRAR
    lote.save(update_fields=["estado", "actualizado_en"])
    _evento(lote, LoteEvento.ENVIADO_A_CALIBRAR, usuario)

    logger.info("Lote %s enviado a calibrar", lote.lote_codigo)
    return lote


# ============================================================
# Ingreso a bodega (cierre)
# ============================================================
@transaction.atomic
def ingresar_a_bodega(lote_id, usuario) -> Lote:
    """
    Cierra el lote: reingresa a bodega el total lavado (SKU sin calibrar),
    el desecho al SKU DES y descarga Sala L del ingreso sucio.
    """
    require_role(usuario)

    lote = _get_lote_para_actualizar(lote_id)
    _exigir_estado(lote, EstadoLote.CERRADO)

    if not lote.lavado_total or lote.lavado_total <= 0:
        raise CantidadInvalidaError(f"El lote {lote.lote_codigo} no tiene total lavado.")

    ahora = timezone.now()
    vale = lote.vale
    comunes = dict(usuario=usuario, ahora=ahora, vale=vale, lote=lote)

    movimientos = [
        nuevo_movimiento(
            tipo=TipoMovimiento.REINGRESO,
            sku_codigo=lote.sku_codigo_lavado,
            sku_nombre=lote.sku_nombre_lavado,
            cantidad=lote.lavado_total,
            espacio=Espacio.BODEGA,
            origen_nombre=SALA_L_NOMBRE,
            destino_nombre=BODEGA_NOMBRE,
            **comunes,
        )
    ]

    if lote.desecho_unidades:
        sku_des = buscar_sku(SKU_DESECHO)
        movimientos.append(
            nuevo_movimiento(
                tipo=TipoMovimiento.REINGRESO,
                sku_codigo=SKU_DESECHO,
                sku_nombre=sku_des.nombre if sku_des else "desecho",
                cantidad=lote.desecho_unidades,
                espacio=Espacio.BODEGA,
                origen_nombre=SALA_L_NOMBRE,
                destino_nombre=BODEGA_NOMBRE,
                **comunes,
            )
        )

    movimientos.append(
        nuevo_movimiento(
            tipo=TipoMovimiento.EGRESO,
            sku_codigo=lote.sku_codigo_sucio,
            sku_nombre=lote.sku_nombre_sucio,
            cantidad=-lote.ingreso_total,
            espacio=Espacio.SALA_L,
            origen_nombre=SALA_L_NOMBRE,
            destino_nombre=BODEGA_NOMBRE,
            **comunes,
        )
    )
    registrar_movimientos(movimientos)

    lote.estado = EstadoLote.CERRADO
    lote.ingreso_bodega_en = ahora
    lote.save(update_fields=["estado", "ingreso_bodega_en", "actualizado_en"])

    _evento(lote, LoteEvento.INGRESO_BODEGA, usuario, {
        "sku": lote.sku_codigo_lavado,
        "lavado_total": lote.lavado_total,
        "desecho_unidades": lote.desecho_unidades or 0,
        "movimiento_ids": [m.pk for m in movimientos],
    })

    logger.info("Lote %s cerrado: +%s %s a bodega", lote.lote_codigo, lote.lavado_total, lote.sku_codigo_lavado)
    return lote


# ============================================================
# Calibración (SINCAL -> SKUs calibrados + DES)
# ============================================================
def _lineas_calibradas(detalles, sku_sincal: str) -> list:
    if not isinstance(detalles, (list, tuple)) or not detalles:
        raise DatosInvalidosError("Debes ingresar al menos 1 SKU calibrado.")

    no_calibrables = set(SKUS_SUCIOS.values()) | {SKU_DESECHO}
    lineas = []
    vistos = set()
    for d in detalles:
        if not isinstance(d, dict):
            raise DatosInvalidosError("Cada detalle debe ser un objeto.")
        sku = obtener_sku(d.get("sku") or d.get("sku_codigo") or "")
        if sku.codigo == SKU_DESECHO:
            raise DatosInvalidosError("El DES se ingresa como desecho (kg), no como SKU calibrado.")
        if sku.codigo in no_calibrables or es_sku_sucio(sku.codigo):
            raise DatosInvalidosError(f"No puedes calibrar {sku_sincal} hacia {sku.codigo}.")
        if sku.codigo in vistos:
            raise DatosInvalidosError(f"SKU repetido en la calibración: {sku.codigo}")
        vistos.add(sku.codigo)

        cbu = DetalleCBU.desde_sku(sku, d.get("cajas"), d.get("bandejas"), d.get("unidades"))
        if cbu.total_unidades <= 0:
            raise CantidadInvalidaError(f"{sku.codigo}: el total calibrado debe ser mayor a 0.")
        lineas.append((sku, cbu))
    return lineas


@transaction.atomic
def calibrar_lote(
    lote_id,
    usuario,
    *,
    detalles,
    desecho_kg=0,
    redondeo: str | None = None,
) -> Lote:
    """
    Convierte en bodega el SINCAL de un lote cerrado en SKUs calibrados.
    Un ingreso por SKU calibrado, DES por el desecho de calibración y un
    egreso del SINCAL por el total de salida. El SINCAL disponible debe cubrir la salida.
    """
    require_role(usuario)

    lote = _get_lote_para_actualizar(lote_id)
    _exigir_estado(lote, EstadoLote.CALIBRADO_OK)

    sku_sincal = lote.sku_codigo_lavado or sku_lavado_desde_sucio(lote.sku_codigo_sucio)

    kg = a_decimal(desecho_kg, "desecho_kg").quantize(Decimal("0.001"), rounding=ROUND_HALF_UP)
    if kg < 0:
        raise CantidadInvalidaError("desecho_kg no puede ser negativo.")
    desecho_unidades = desecho_kg_a_unidades(kg, redondeo)

    lineas = _lineas_calibradas(detalles, sku_sincal)
    total_calibrado = sum(cbu.total_unidades for _, cbu in lineas)
    total_salida = total_calibrado + desecho_unidades

    stock_sincal = get_stock_para_actualizar(sku_sincal, Espacio.BODEGA, lote.sku_nombre_lavado)
    if total_salida > stock_sincal.cantidad:
        raise CantidadInvalidaError(
            f"Stock insuficiente en {sku_sincal}. Disponible {stock_sincal.cantidad} u, salida {total_salida} u."
        )

    ahora = timezone.now()
    comunes = dict(usuario=usuario, ahora=ahora, vale=lote.vale, lote=lote, espacio=Espacio.BODEGA)

    movimientos = [
        nuevo_movimiento(
            tipo=TipoMovimiento.INGRESO,
            sku_codigo=sku.codigo,
            sku_nombre=sku.nombre,
            cantidad=cbu.total_unidades,
            origen_nombre=f"{BODEGA_NOMBRE} ({sku_sincal})",
            destino_nombre=BODEGA_NOMBRE,
            **comunes,
        )
        for sku, cbu in lineas
    ]
    if desecho_unidades:
        sku_des = buscar_sku(SKU_DESECHO)
        movimientos.append(
            nuevo_movimiento(
                tipo=TipoMovimiento.INGRESO,
                sku_codigo=SKU_DESECHO,
                sku_nombre=sku_des.nombre if sku_des else "desecho",
                cantidad=desecho_unidades,
                origen_nombre=f"{BODEGA_NOMBRE} ({sku_sincal})",
                destino_nombre=f"{BODEGA_NOMBRE} ({SKU_DESECHO})",
                **comunes,
            )
        )
    movimientos.append(
        nuevo_movimiento(
            tipo=TipoMovimiento.EGRESO,
            sku_codigo=sku_sincal,
            sku_nombre=stock_sincal.sku_nombre or lote.sku_nombre_lavado,
            cantidad=-total_salida,
            origen_nombre=f"{BODEGA_NOMBRE} ({sku_sincal})",
            destino_nombre=f"{BODEGA_NOMBRE} (calibración)",
            **comunes,
        )
    )
    registrar_movimientos(movimientos)

    referencia = lote.lavado_total or 0
    lote.calibracion = {
        "sku_sincal": sku_sincal,
        "detalles": [cbu.as_dict() for _, cbu in lineas],
        "desecho_kg": str(kg),
        "desecho_unidades": desecho_unidades,
        "total_calibrado": total_calibrado,
        "total_salida": total_salida,
        "sincal_referencia": referencia,
        "diferencia_vs_sincal": total_salida - referencia,
        "porcentaje_calibrado": str(porcentaje(total_calibrado, referencia)),
        "porcentaje_desecho": str(porcentaje(desecho_unidades, referencia)),
    }
    lote.calibrado_en = ahora
    lote.estado = EstadoLote.CALIBRADO_OK
    _validar(lote)
    lote.save(update_fields=["estado", "calibracion", "calibrado_en", "actualizado_en"])

    _evento(lote, LoteEvento.CALIBRACION_CONFIRMADA, usuario, {
        **lote.calibracion,
        "movimiento_ids": [m.pk for m in movimientos],
    })

    if total_salida != referencia:
        logger.warning(
            "Lote %s: salida de calibración (%s) difiere del lavado (%s)",
            lote.lote_codigo,
            total_salida,
            referencia,
        )
    logger.info(
        "Lote %s calibrado: %s u calibradas + %s u DES desde %s",
        lote.lote_codigo,
        total_calibrado,
        desecho_unidades,
        sku_sincal,
    )
    return lote


# ============================================================
# Avanzar (dispatcher)
# ============================================================
def avanzar_lote(lote_id, estado_destino: str, usuario, **datos) -> Lote:
    if estado_destino not in EstadoLote.values:
        raise DatosInvalidosError(f"Estado de lote inválido: {estado_destino}")

    if estado_destino == EstadoLote.LAVADO_REGISTRADO:
        return registrar_lavado(
            lote_id,
            usuario,
            cajas=datos.get("cajas", 0),
            bandejas=datos.get("bandejas", 0),
            unidades=datos.get("unidades", 0),
            desecho_kg=datos.get("desecho_kg", 0),
            redondeo=datos.get("redondeo"),
        )
    if estado_destino == EstadoLote.ENVIADO_A_CALIBRAR:
        return enviar_a_calibrar(lote_id, usuario)
    if estado_destino == EstadoLote.CERRADO:
        return ingresar_a_bodega(lote_id, usuario)
    if estado_destino == EstadoLote.CALIBRADO_OK:
        return calibrar_lote(
            lote_id,
            usuario,
            detalles=datos.get("detalles"),
            desecho_kg=datos.get("desecho_kg", 0),
            redondeo=datos.get("redondeo"),
        )

    # EN_SALA solo se alcanza al validar el vale
    lote = Lote.objects.filter(pk=lote_id).first()
    if lote is None:
        raise NoEncontradoError(f"Lote no encontrado: {lote_id}")
    raise EstadoInvalidoError(f"El lote {lote.lote_codigo} no puede volver a {estado_destino}.")
