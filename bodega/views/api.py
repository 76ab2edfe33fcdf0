import json
import logging
from functools import wraps

from django.contrib.auth.decorators import login_required
from django.core.exceptions import ValidationError
from django.http import HttpResponse, JsonResponse
from django.views.decorators.http import require_GET, require_POST

from bodega.domain.exceptions import (
    DatosInvalidosError,
    DomainError,
    EstadoInvalidoError,
    NoAutorizadoError,
    NoEncontradoError,
)
from bodega.domain.rules import require_role
from bodega.models import Espacio, UserProfile
from bodega.repositories.sku_repo import normalizar_codigo
from bodega.services import ajuste_service, cartola_service, lote_service, vale_service
from bodega.services.movimiento_service import historial_movimientos, obtener_stock
from bodega.services.reconciliacion_service import reconciliar_stock

logger = logging.getLogger(__name__)

STATUS_POR_ERROR = (
    (NoEncontradoError, 404),
    (EstadoInvalidoError, 409),
    (NoAutorizadoError, 403),
    (DatosInvalidosError, 400),
)

HISTORIAL_LIMITE = 500


# ============================================================
# Helpers
# ============================================================
def _status_de(error: DomainError) -> int:
    for clase, status in STATUS_POR_ERROR:
        if isinstance(error, clase):
            return status
    return 400


def _mensaje_validacion(e: ValidationError) -> str:
    if hasattr(e, "message_dict"):
        return " ".join([" ".join(v) for v in e.message_dict.values()])
    return " ".join(e.messages)


def api_view(view):
    """Traduce errores de dominio a {"ok": false, "codigo", "error"}."""

    @wraps(view)
    def _wrapped(request, *args, **kwargs):
        try:
            return view(request, *args, **kwargs)
        except DomainError as e:
            logger.info("API %s %s -> %s: %s", request.method, request.path, e.codigo, e.mensaje)
            return JsonResponse(e.as_dict(), status=_status_de(e))
        except ValidationError as e:
            return JsonResponse(
                {"ok": False, "codigo": DatosInvalidosError.codigo, "error": _mensaje_validacion(e)},
                status=400,
            )

    return _wrapped


def _payload(request) -> dict:
    if request.content_type == "application/json":
        try:
            data = json.loads(request.body or b"{}")
        except ValueError:
            raise DatosInvalidosError("JSON inválido.") from None
        if not isinstance(data, dict):
            raise DatosInvalidosError("Se esperaba un objeto JSON.")
        return data
    return request.POST.dict()


def _lista(valor, campo: str):
    # en formularios llega como texto JSON
    if isinstance(valor, str):
        try:
            valor = json.loads(valor)
        except ValueError:
            raise DatosInvalidosError(f"{campo} debe ser una lista JSON.") from None
    if valor is not None and not isinstance(valor, list):
        raise DatosInvalidosError(f"{campo} debe ser una lista.")
    return valor


def _espacio(valor) -> str:
    espacio = (valor or Espacio.BODEGA).strip().lower()
    if espacio not in Espacio.values:
        raise DatosInvalidosError(f"Espacio inválido: {valor}")
    return espacio


def _vale_dict(vale) -> dict:
    return {
        "id": vale.pk,
        "referencia": vale.referencia,
        "tipo": vale.tipo,
        "estado": vale.estado,
        "fecha": vale.fecha.isoformat(),
        "hora": vale.hora.strftime("%H:%M") if vale.hora else "",
        "correlativo_dia": vale.correlativo_dia,
        "numero_global": vale.numero_global,
        "origen": vale.origen_nombre,
        "destino": vale.destino_nombre,
        "pabellon": vale.pabellon_nombre,
        "creado_por": vale.creado_por_nombre,
        "validado_por": vale.validado_por_nombre,
        "observaciones": vale.observaciones,
        "detalles": [
            {
                "sku": d.sku_codigo,
                "nombre": d.sku_nombre,
                "cajas": d.cajas,
                "bandejas": d.bandejas,
                "unidades": d.unidades,
                "total_unidades": d.total_unidades,
            }
            for d in vale.detalles.order_by("id")
        ],
    }


def _lote_dict(lote) -> dict:
    return {
        "id": lote.pk,
        "lote_codigo": lote.lote_codigo,
        "estado": lote.estado,
        "vale_referencia": lote.vale_referencia,
        "sku_sucio": lote.sku_codigo_sucio,
        "ingreso_total": lote.ingreso_total,
        "sku_lavado": lote.sku_codigo_lavado,
        "lavado_total": lote.lavado_total,
        "desecho_kg": str(lote.desecho_kg) if lote.desecho_kg is not None else None,
        "desecho_unidades": lote.desecho_unidades,
        "porcentaje_lavado": str(lote.porcentaje_lavado) if lote.porcentaje_lavado is not None else None,
        "porcentaje_desecho": str(lote.porcentaje_desecho) if lote.porcentaje_desecho is not None else None,
        "calibracion": lote.calibracion,
    }


def _movimiento_dict(m) -> dict:
    return {
        "id": m.pk,
        "tipo": m.tipo,
        "espacio": m.espacio,
        "sku": m.sku_codigo,
        "nombre": m.sku_nombre,
        "cantidad": m.cantidad,
        "stock_anterior": m.stock_anterior,
        "stock_nuevo": m.stock_nuevo,
        "fecha": m.fecha.isoformat() if m.fecha else "",
        "hora": m.hora.strftime("%H:%M") if m.hora else "",
        "vale_id": m.vale_id,
        "vale_referencia": m.vale_referencia,
        "lote_id": m.lote_id,
        "lote_codigo": m.lote_codigo,
        "razon": m.razon,
        "usuario": m.usuario_nombre,
    }


def _id_opcional(valor, campo: str):
    if not valor:
        return None
    try:
        return int(valor)
    except ValueError:
        raise DatosInvalidosError(f"{campo} debe ser numérico.") from None


def _filtros_historial(request) -> dict:
    return {
        "sku_codigo": normalizar_codigo(request.GET.get("sku") or "") or None,
        "vale_id": _id_opcional(request.GET.get("vale"), "vale"),
        "lote_id": _id_opcional(request.GET.get("lote"), "lote"),
        "espacio": request.GET.get("espacio") or None,
        "tipo": request.GET.get("tipo") or None,
        "desde": request.GET.get("desde") or None,
        "hasta": request.GET.get("hasta") or None,
    }


# ============================================================
# Vales
# ============================================================
@require_POST
@login_required
@api_view
def api_vale_crear(request):
    data = _payload(request)
    detalles = _lista(data.get("detalles"), "detalles")

    vale = vale_service.crear_vale(
        tipo=(data.get("tipo") or "").strip().lower(),
        origen_id=data.get("origen_id") or "",
        origen_nombre=data.get("origen_nombre") or "",
        destino_id=data.get("destino_id") or "",
        destino_nombre=data.get("destino_nombre") or "",
        pabellon_id=data.get("pabellon_id") or "",
        pabellon_nombre=data.get("pabellon_nombre") or "",
        comentario=data.get("comentario") or "",
        detalles=detalles or [],
        usuario=request.user,
    )
    return JsonResponse({"ok": True, "vale": _vale_dict(vale)}, status=201)


@require_POST
@login_required
@api_view
def api_vale_validar(request, vale_id):
    data = _payload(request)
    resultado = vale_service.validar_vale(vale_id, request.user, data.get("observaciones") or "")
    return JsonResponse({
        "ok": True,
        "vale": _vale_dict(resultado.vale),
        "movimiento_ids": resultado.movimiento_ids,
        "lote_id": resultado.lote_id,
    })


@require_POST
@login_required
@api_view
def api_vale_rechazar(request, vale_id):
    data = _payload(request)
    vale = vale_service.rechazar_vale(vale_id, request.user, data.get("observaciones") or "")
    return JsonResponse({"ok": True, "vale": _vale_dict(vale)})


# ============================================================
# Lotes (Sala L)
# ============================================================
@require_POST
@login_required
@api_view
def api_lote_avanzar(request, lote_id):
    data = _payload(request)
    estado = (data.pop("estado", "") or "").strip().upper()
    datos = {k: data[k] for k in ("cajas", "bandejas", "unidades", "desecho_kg", "redondeo") if k in data}
    if "detalles" in data:
        datos["detalles"] = _lista(data["detalles"], "detalles")

    lote = lote_service.avanzar_lote(lote_id, estado, request.user, **datos)
    return JsonResponse({"ok": True, "lote": _lote_dict(lote)})


# ============================================================
# Stock
# ============================================================
@require_GET
@login_required
@api_view
def api_stock(request, sku_codigo):
    codigo = normalizar_codigo(sku_codigo)
    espacio = _espacio(request.GET.get("espacio"))
    return JsonResponse({
        "ok": True,
        "sku": codigo,
        "espacio": espacio,
        "cantidad": obtener_stock(codigo, espacio),
    })


@require_POST
@login_required
@api_view
def api_ajuste(request):
    data = _payload(request)
    resultado = ajuste_service.aplicar_ajuste(
        data.get("sku") or "",
        (data.get("modo") or "").strip().lower(),
        data.get("magnitud"),
        data.get("razon") or "",
        request.user,
        espacio=_espacio(data.get("espacio")),
        observaciones=data.get("observaciones") or "",
    )
    return JsonResponse({
        "ok": True,
        "movimiento": _movimiento_dict(resultado.movimiento),
        "stock_anterior": resultado.stock_anterior,
        "stock_nuevo": resultado.stock_nuevo,
    })


# ============================================================
# Movimientos (kardex)
# ============================================================
@require_GET
@login_required
@api_view
def api_movimientos(request):
    qs = historial_movimientos(**_filtros_historial(request))
    results = [_movimiento_dict(m) for m in qs[:HISTORIAL_LIMITE]]
    return JsonResponse({"ok": True, "results": results})


@require_GET
@login_required
@api_view
def api_cartola_excel(request):
    filtros = _filtros_historial(request)
    qs = historial_movimientos(ascendente=True, **filtros)

    response = HttpResponse(
        cartola_service.exportar_cartola_excel(qs),
        content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    nombre = cartola_service.nombre_archivo_cartola(filtros["sku_codigo"] or "")
    response["Content-Disposition"] = f"attachment; filename={nombre}"
    return response


# ============================================================
# Reconciliación
# ============================================================
@require_POST
@login_required
@api_view
def api_reconciliar(request):
    require_role(request.user, UserProfile.Rol.SUPERADMIN)
    resultado = reconciliar_stock(request.user)
    return JsonResponse({"ok": True, **resultado.as_dict()})
