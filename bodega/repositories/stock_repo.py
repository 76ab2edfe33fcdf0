from bodega.models import Espacio, Stock


def get_stock(sku_codigo: str, espacio: str = Espacio.BODEGA):
    return Stock.objects.filter(sku_codigo=sku_codigo, espacio=espacio).first()


def get_stock_para_actualizar(sku_codigo: str, espacio: str, sku_nombre: str = ""):
    stock, _ = Stock.objects.select_for_update().get_or_create(
        sku_codigo=sku_codigo,
        espacio=espacio,
        defaults={"cantidad": 0, "sku_nombre": sku_nombre},
    )
    return stock
