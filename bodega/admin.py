from django.contrib import admin

from .models import (
    Correlativo,
    Lote,
    LoteEvento,
    Movimiento,
    Sku,
    Stock,
    UserProfile,
    Vale,
    ValeDetalle,
)


@admin.register(Sku)
class SkuAdmin(admin.ModelAdmin):
    search_fields = ("codigo", "nombre")
    list_filter = ("tipo", "activo")
    list_display = ("codigo", "nombre", "tipo", "calibre", "unidades_por_caja", "unidades_por_bandeja", "activo")


class ValeDetalleInline(admin.TabularInline):
    model = ValeDetalle
    extra = 0
    readonly_fields = ("total_unidades",)


@admin.register(Vale)
class ValeAdmin(admin.ModelAdmin):
    search_fields = ("origen_nombre", "destino_nombre", "creado_por_nombre", "detalles__sku_codigo")
    list_filter = ("tipo", "estado", "fecha")
    list_display = ("referencia", "fecha", "tipo", "estado", "origen_nombre", "destino_nombre", "numero_global")
    readonly_fields = ("correlativo_dia", "numero_global", "validado_por", "validado_en", "creado_en", "actualizado_en")
    inlines = (ValeDetalleInline,)


class LoteEventoInline(admin.TabularInline):
    model = LoteEvento
    extra = 0
    can_delete = False
    readonly_fields = ("tipo", "datos", "usuario_nombre", "creado_en")


@admin.register(Lote)
class LoteAdmin(admin.ModelAdmin):
    search_fields = ("lote_codigo", "vale_referencia", "pabellon_nombre")
    list_filter = ("estado", "sku_codigo_sucio")
    list_display = (
        "lote_codigo",
        "estado",
        "sku_codigo_sucio",
        "ingreso_total",
        "lavado_total",
        "desecho_unidades",
        "porcentaje_lavado",
        "ingreso_sala_en",
    )
    inlines = (LoteEventoInline,)


@admin.register(Stock)
class StockAdmin(admin.ModelAdmin):
    search_fields = ("sku_codigo", "sku_nombre")
    list_filter = ("espacio",)
    list_display = ("sku_codigo", "espacio", "cantidad", "actualizado_en_operacion")


@admin.register(Movimiento)
class MovimientoAdmin(admin.ModelAdmin):
    search_fields = ("sku_codigo", "vale_referencia", "lote_codigo", "razon", "usuario_nombre")
    list_filter = ("tipo", "espacio")
    list_display = ("creado_en", "tipo", "espacio", "sku_codigo", "cantidad", "stock_nuevo", "vale_referencia", "lote_codigo")

    # El kardex es append-only
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(Correlativo)
class CorrelativoAdmin(admin.ModelAdmin):
    list_display = ("clave", "ultimo_numero")
    search_fields = ("clave",)


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    search_fields = ("user__username", "user__email")
    list_display = ("user", "rol")
    list_filter = ("rol",)
