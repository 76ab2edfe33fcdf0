from django.urls import path

from .views.api import (
    api_ajuste,
    api_cartola_excel,
    api_lote_avanzar,
    api_movimientos,
    api_reconciliar,
    api_stock,
    api_vale_crear,
    api_vale_rechazar,
    api_vale_validar,
)

app_name = "bodega"

urlpatterns = [
    # ==========================
    # VALES
    # ==========================
    path("api/vales/", api_vale_crear, name="api_vale_crear"),
    path("api/vales/<int:vale_id>/validar/", api_vale_validar, name="api_vale_validar"),
    path("api/vales/<int:vale_id>/rechazar/", api_vale_rechazar, name="api_vale_rechazar"),

    # ==========================
    # SALA L
    # ==========================
    path("api/lotes/<int:lote_id>/avanzar/", api_lote_avanzar, name="api_lote_avanzar"),

    # ==========================
    # STOCK / KARDEX
    # ==========================
    path("api/stock/ajustes/", api_ajuste, name="api_ajuste"),
    path("api/stock/<str:sku_codigo>/", api_stock, name="api_stock"),
    path("api/movimientos/", api_movimientos, name="api_movimientos"),
    path("api/movimientos/cartola.xlsx", api_cartola_excel, name="api_cartola_excel"),
    path("api/reconciliacion/", api_reconciliar, name="api_reconciliar"),
]
