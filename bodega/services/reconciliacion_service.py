"""
Reparación y reconciliación del stock.

El kardex (Movimiento) es la fuente de verdad; Stock es un snapshot derivado.
reconciliar_stock() corre en 4 fases, cada una en su propia transacción:

  1. corrige el signo de movimientos que contradicen su tipo (migración legacy)
  2. elimina snapshots corruptos (claves sintéticas, sin actividad, negativos
     sin historial de ajustes negativos)
  3. recalcula Σ cantidad por (espacio, SKU)
  4. sobrescribe / crea los snapshots con lo recalculado

Volver a correrla converge al mismo resultado.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass

from django.db import transaction
from django.db.models import F, Q, Sum
from django.utils import timezone

from bodega.models import Espacio, Movimiento, Stock, TipoMovimiento
from bodega.repositories.sku_repo import normalizar_codigo

logger = logging.getLogger(__name__)

TIPOS_POSITIVOS = (TipoMovimiento.INGRESO, TipoMovimiento.REINGRESO)


@dataclass(frozen=True)
class ReconciliacionResultado:
    movimientos_corregidos: int
    stocks_eliminados: int
    skus_recalculados: int

    def as_dict(self) -> dict:
        return {
            "movimientos_corregidos": self.movimientos_corregidos,
            "stocks_eliminados": self.stocks_eliminados,
            "skus_recalculados": self.skus_recalculados,
        }


def _clave_sintetica(codigo: str) -> bool:
    return not codigo or codigo != normalizar_codigo(codigo)


# ============================================================
# Fase 1: signos
# ============================================================
@transaction.atomic
def corregir_signos() -> int:
    """Única mutación permitida sobre el kardex: el signo vuelve a respetar el tipo."""
    positivos = Movimiento.objects.filter(tipo__in=TIPOS_POSITIVOS, cantidad__lt=0)
    negativos = Movimiento.objects.filter(tipo=TipoMovimiento.EGRESO, cantidad__gt=0)

    # queryset.update() no pasa por Movimiento.save()
    corregidos = positivos.update(cantidad=-F("cantidad"))
    corregidos += negativos.update(cantidad=-F("cantidad"))

    en_cero = (
        Movimiento.objects
        .filter(cantidad=0)
        .exclude(tipo=TipoMovimiento.AJUSTE)
        .count()
    )
    if en_cero:
        logger.warning("Reconciliación: %s movimientos con cantidad 0 (sin corregir)", en_cero)

    logger.info("Reconciliación fase 1: %s movimientos con signo corregido", corregidos)
    return corregidos


# ============================================================
# Fase 2: snapshots corruptos
# ============================================================
@transaction.atomic
def eliminar_stocks_invalidos() -> int:
    con_actividad = set(
        Movimiento.objects
        .values_list("espacio", "sku_codigo")
        .distinct()
    )
    con_ajuste_negativo = set(
        Movimiento.objects
        .filter(tipo=TipoMovimiento.AJUSTE, cantidad__lt=0)
        .values_list("espacio", "sku_codigo")
        .distinct()
    )

    eliminar = []
    for stock in Stock.objects.select_for_update().order_by("espacio", "sku_codigo"):
        key = (stock.espacio, stock.sku_codigo)
        if _clave_sintetica(stock.sku_codigo):
            motivo = "clave inválida"
        elif key not in con_actividad:
            motivo = "sin movimientos"
        elif stock.cantidad < 0 and key not in con_ajuste_negativo:
            motivo = "negativo sin ajustes"
        else:
            continue
        logger.info("Eliminando stock %r @ %s (%s): %s", stock.sku_codigo, stock.espacio, motivo, stock.cantidad)
        eliminar.append(stock.pk)

    if eliminar:
        Stock.objects.filter(pk__in=eliminar).delete()

    logger.info("Reconciliación fase 2: %s stocks eliminados", len(eliminar))
    return len(eliminar)


# ============================================================
# Fase 3: recálculo
# ============================================================
def calcular_stock_desde_movimientos(espacio: str) -> dict[str, int]:
    """Σ cantidad por SKU en un espacio. Movimientos malformados se omiten."""
    qs = Movimiento.objects.filter(espacio=espacio)

    malformados = qs.filter(Q(sku_codigo="") | ~Q(tipo__in=TipoMovimiento.values))
    n_malformados = malformados.count()
    if n_malformados:
        logger.warning(
            "Reconciliación %s: %s movimientos sin SKU o con tipo desconocido omitidos",
            espacio,
            n_malformados,
        )

    totales = {}
    filas = (
        qs.exclude(pk__in=malformados.values("pk"))
        .values("sku_codigo")
        .annotate(total=Sum("cantidad"))
        .order_by("sku_codigo")
    )
    for fila in filas:
        codigo = fila["sku_codigo"]
        if _clave_sintetica(codigo):
            logger.warning("Reconciliación %s: SKU %r no normalizado, omitido", espacio, codigo)
            continue
        totales[codigo] = int(fila["total"] or 0)
    return totales


# ============================================================
# Fase 4: escritura de snapshots
# ============================================================
def _nombres_por_sku(espacio: str) -> dict[str, str]:
    nombres = {}
    qs = (
        Movimiento.objects
        .filter(espacio=espacio)
        .exclude(sku_nombre="")
        .order_by("creado_en", "id")
        .values_list("sku_codigo", "sku_nombre")
    )
    for codigo, nombre in qs:
        nombres[codigo] = nombre
    return nombres


@transaction.atomic
def recalcular_snapshots(espacio: str) -> dict[str, int]:
    """
    Recalcula todos los snapshots de un espacio desde el kardex.
    Sobrescribe los existentes y crea los que faltan cuando el total no es 0.
    """
    totales = calcular_stock_desde_movimientos(espacio)
    nombres = _nombres_por_sku(espacio)
    ahora = timezone.now()

    existentes = {
        s.sku_codigo: s
        for s in Stock.objects.select_for_update().filter(espacio=espacio)
    }

    escritos = {}
    for codigo, total in totales.items():
        stock = existentes.get(codigo)
        if stock is None:
            if total == 0:
                continue
            Stock.objects.create(
                sku_codigo=codigo,
                sku_nombre=nombres.get(codigo, ""),
                espacio=espacio,
                cantidad=total,
                actualizado_en_operacion=ahora,
            )
        else:
            if stock.cantidad != total:
                logger.info("Stock %s @ %s: %s -> %s", codigo, espacio, stock.cantidad, total)
            stock.cantidad = total
            stock.sku_nombre = nombres.get(codigo, stock.sku_nombre)
            stock.actualizado_en_operacion = ahora
            stock.save(update_fields=["cantidad", "sku_nombre", "actualizado_en_operacion", "actualizado_en"])
        escritos[codigo] = total

    logger.info("Reconciliación %s: %s SKUs recalculados", espacio, len(escritos))
    return escritos


# ============================================================
# Procedimiento completo
# ============================================================
def reconciliar_stock(usuario=None) -> ReconciliacionResultado:
    """
    No es atómica entre fases: si falla a mitad, basta con volver a correrla.
    """
    actor = usuario.get_username() if usuario else "sistema"
    logger.info("Reconciliación de stock iniciada por %s", actor)

    corregidos = corregir_signos()
    eliminados = eliminar_stocks_invalidos()

    recalculados = 0
    for espacio in Espacio.values:
        recalculados += len(recalcular_snapshots(espacio))

    resultado = ReconciliacionResultado(
        movimientos_corregidos=corregidos,
        stocks_eliminados=eliminados,
        skus_recalculados=recalculados,
    )
    logger.info("Reconciliación completada: %s", resultado.as_dict())
    return resultado
