from bodega.domain.exceptions import NoEncontradoError
from bodega.models import Sku


def normalizar_codigo(code: str) -> str:
    # Códigos legacy venían con guiones ("BLA-MAN")
    return " ".join((code or "").replace("-", " ").split()).upper()


def buscar_sku(code: str):
    code = normalizar_codigo(code)
    if not code:
        return None

    return Sku.objects.filter(codigo=code).first()


def obtener_sku(code: str, *, solo_activos: bool = True) -> Sku:
    sku = buscar_sku(code)
    if sku is None or (solo_activos and not sku.activo):
        raise NoEncontradoError(f"SKU no encontrado: {code}")
    return sku
