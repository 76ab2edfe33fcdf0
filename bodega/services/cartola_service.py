from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO

import pandas as pd
from django.utils import timezone

from bodega.models import Sku

UPC_DEFECTO = 180
UPB_DEFECTO = 30

COLUMNAS = [
    "Fecha",
    "Hora",
    "Tipo",
    "Espacio",
    "SKU",
    "Nombre",
    "Cantidad",
    "Desglose",
    "Stock anterior",
    "Stock nuevo",
    "Vale",
    "Lote",
    "Origen",
    "Destino",
    "Razón",
    "Usuario",
]


@dataclass(frozen=True)
class Desglose:
    cajas: int
    bandejas: int
    unidades: int


def calcular_desglose(cantidad, unidades_por_caja=UPC_DEFECTO, unidades_por_bandeja=UPB_DEFECTO) -> Desglose:
    """
    Desglosa unidades en cajas / bandejas / unidades sueltas.
    Usa el valor absoluto: un egreso (-1800) se desglosa igual que +1800.
    """
    qty = abs(int(cantidad or 0))
    upc = int(unidades_por_caja or 0) or UPC_DEFECTO
    upb = int(unidades_por_bandeja or 0) or UPB_DEFECTO

    cajas, resto = divmod(qty, upc)
    bandejas, unidades = divmod(resto, upb)
    return Desglose(cajas=cajas, bandejas=bandejas, unidades=unidades)


def formatear_desglose(desglose: Desglose | None) -> str:
    if desglose is None:
        return "-"

    partes = []
    if desglose.cajas > 0:
        partes.append(f"{desglose.cajas}C")
    if desglose.bandejas > 0:
        partes.append(f"{desglose.bandejas}B")
    if desglose.unidades > 0:
        partes.append(f"{desglose.unidades}U")
    return " ".join(partes) if partes else "0U"


def _factores(codigos) -> dict[str, tuple[int, int]]:
    return {
        s.codigo: (s.unidades_por_caja, s.unidades_por_bandeja)
        for s in Sku.objects.filter(codigo__in=set(codigos))
    }


def cartola_dataframe(movimientos) -> pd.DataFrame:
    movimientos = list(movimientos)
    factores = _factores(m.sku_codigo for m in movimientos)

    filas = []
    for m in movimientos:
        upc, upb = factores.get(m.sku_codigo, (UPC_DEFECTO, UPB_DEFECTO))
        filas.append({
            "Fecha": m.fecha.isoformat() if m.fecha else "",
            "Hora": m.hora.strftime("%H:%M") if m.hora else "",
            "Tipo": m.get_tipo_display(),
            "Espacio": m.get_espacio_display(),
            "SKU": m.sku_codigo,
            "Nombre": m.sku_nombre,
            "Cantidad": m.cantidad,
            "Desglose": formatear_desglose(calcular_desglose(m.cantidad, upc, upb)),
            "Stock anterior": m.stock_anterior,
            "Stock nuevo": m.stock_nuevo,
            "Vale": m.vale_referencia,
            "Lote": m.lote_codigo,
            "Origen": m.origen_nombre,
            "Destino": m.destino_nombre,
            "Razón": m.razon,
            "Usuario": m.usuario_nombre,
        })
    return pd.DataFrame(filas, columns=COLUMNAS)


def exportar_cartola_excel(movimientos) -> bytes:
    """
    Cartola de movimientos en Excel: hoja "Movimientos" con el detalle y
    hoja "Saldos" con Σ cantidad por SKU y espacio.
    """
    df = cartola_dataframe(movimientos)

    if df.empty:
        saldos = pd.DataFrame(columns=["SKU", "Espacio", "Movimientos", "Saldo"])
    else:
        saldos = (
            df.groupby(["SKU", "Espacio"], as_index=False)
            .agg(Movimientos=("Cantidad", "size"), Saldo=("Cantidad", "sum"))
            .sort_values(["Espacio", "SKU"])
        )

    output = BytesIO()
    with pd.ExcelWriter(output, engine="xlsxwriter") as writer:
        df.to_excel(writer, sheet_name="Movimientos", index=False)
        saldos.to_excel(writer, sheet_name="Saldos", index=False)

        workbook = writer.book
        header_format = workbook.add_format({
            "bold": True,
            "bg_color": "#4F81BD",
            "font_color": "white",
            "border": 1,
        })
        number_format = workbook.add_format({"num_format": "#,##0"})

        hoja = writer.sheets["Movimientos"]
        for col, header in enumerate(df.columns):
            hoja.write(0, col, header, header_format)
        hoja.set_column(0, len(COLUMNAS) - 1, 15)
        hoja.set_column(6, 6, 12, number_format)
        hoja.set_column(8, 9, 14, number_format)

        hoja_saldos = writer.sheets["Saldos"]
        for col, header in enumerate(saldos.columns):
            hoja_saldos.write(0, col, header, header_format)
        hoja_saldos.set_column(0, 1, 15)
        hoja_saldos.set_column(2, 3, 14, number_format)

    output.seek(0)
    return output.getvalue()


def nombre_archivo_cartola(sku_codigo: str = "") -> str:
    sufijo = (sku_codigo or "movimientos").replace(" ", "_").lower()
    return f"cartola_{sufijo}_{timezone.localdate():%Y%m%d}.xlsx"
