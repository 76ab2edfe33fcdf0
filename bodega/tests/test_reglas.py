from datetime import date
from decimal import Decimal

from django.test import SimpleTestCase, override_settings

from bodega.domain.exceptions import CantidadInvalidaError, DatosInvalidosError
from bodega.domain.rules import (
    DetalleCBU,
    cantidad_con_signo,
    desecho_kg_a_unidades,
    generar_lote_codigo,
    porcentaje,
    signo_corregido,
    signo_valido,
    sku_lavado_desde_sucio,
)
from bodega.models import Sku, TipoMovimiento
from bodega.repositories.sku_repo import normalizar_codigo
from bodega.services.cartola_service import calcular_desglose, formatear_desglose


class DesechoTests(SimpleTestCase):

    def test_conversion_kg_a_unidades(self):
        """1.2 kg con 60 g/unidad = 20 unidades"""
        self.assertEqual(desecho_kg_a_unidades(Decimal("1.2"), gramos=60), 20)
        print("✅ Desecho 1.2 kg -> 20 u")

    def test_modos_de_redondeo(self):
        # 1.23 kg / 60 g = 20.5 u
        self.assertEqual(desecho_kg_a_unidades("1.23", "round", 60), 21)
        self.assertEqual(desecho_kg_a_unidades("1.23", "floor", 60), 20)
        self.assertEqual(desecho_kg_a_unidades("1.23", "ceil", 60), 21)
        self.assertEqual(desecho_kg_a_unidades("1.21", "ceil", 60), 21)
        self.assertEqual(desecho_kg_a_unidades("1.21", "round", 60), 20)

    def test_desecho_cero(self):
        self.assertEqual(desecho_kg_a_unidades(0), 0)
        self.assertEqual(desecho_kg_a_unidades(None), 0)

    def test_redondeo_invalido(self):
        with self.assertRaises(DatosInvalidosError):
            desecho_kg_a_unidades("1", "truncar", 60)

    def test_kg_no_numerico(self):
        with self.assertRaises(CantidadInvalidaError):
            desecho_kg_a_unidades("abc")

    @override_settings(BODEGA_GRAMOS_POR_UNIDAD=50, BODEGA_REDONDEO_DESECHO="floor")
    def test_usa_configuracion(self):
        # 1.23 kg / 50 g = 24.6 u -> floor
        self.assertEqual(desecho_kg_a_unidades("1.23"), 24)


class SignosTests(SimpleTestCase):

    def test_cantidad_con_signo(self):
        self.assertEqual(cantidad_con_signo(TipoMovimiento.INGRESO, 10), 10)
        self.assertEqual(cantidad_con_signo(TipoMovimiento.REINGRESO, 10), 10)
        self.assertEqual(cantidad_con_signo(TipoMovimiento.EGRESO, 10), -10)

    def test_signo_valido(self):
        self.assertTrue(signo_valido(TipoMovimiento.INGRESO, 5))
        self.assertFalse(signo_valido(TipoMovimiento.INGRESO, -5))
        self.assertFalse(signo_valido(TipoMovimiento.REINGRESO, 0))
        self.assertTrue(signo_valido(TipoMovimiento.EGRESO, -5))
        self.assertFalse(signo_valido(TipoMovimiento.EGRESO, 5))
        self.assertTrue(signo_valido(TipoMovimiento.AJUSTE, -5))
        self.assertTrue(signo_valido(TipoMovimiento.AJUSTE, 5))
        self.assertFalse(signo_valido(TipoMovimiento.AJUSTE, 0))
        self.assertFalse(signo_valido("traspaso", 5))

    def test_signo_corregido(self):
        self.assertEqual(signo_corregido(TipoMovimiento.INGRESO, -50), 50)
        self.assertEqual(signo_corregido(TipoMovimiento.EGRESO, 50), -50)
        self.assertEqual(signo_corregido(TipoMovimiento.AJUSTE, -7), -7)


class LineasTests(SimpleTestCase):

    def setUp(self):
        self.sku = Sku(codigo="BLA 1ERA", nombre="blanco 1era", unidades_por_caja=180, unidades_por_bandeja=30)

    def test_total_cbu(self):
        d = DetalleCBU.desde_sku(self.sku, 10, 2, 5)
        self.assertEqual(d.total_unidades, 10 * 180 + 2 * 30 + 5)
        self.assertEqual(d.as_dict()["sku"], "BLA 1ERA")

    def test_cbu_negativo(self):
        with self.assertRaises(CantidadInvalidaError):
            DetalleCBU.desde_sku(self.sku, -1, 0, 0)

    def test_cbu_no_entero(self):
        with self.assertRaises(CantidadInvalidaError):
            DetalleCBU.desde_sku(self.sku, "diez", 0, 0)

    def test_cbu_fraccionario_se_rechaza(self):
        for valor in (2.7, "2.5", "1e-1"):
            with self.assertRaises(CantidadInvalidaError):
                DetalleCBU.desde_sku(self.sku, valor, 0, 0)
        with self.assertRaises(CantidadInvalidaError):
            DetalleCBU.desde_sku(self.sku, 0, 0, 0.5)

    def test_cbu_entero_en_otro_formato(self):
        d = DetalleCBU.desde_sku(self.sku, 2.0, "3", " 4 ")
        self.assertEqual((d.cajas, d.bandejas, d.unidades), (2, 3, 4))
        self.assertEqual(d.total_unidades, 2 * 180 + 3 * 30 + 4)

    def test_vacios_son_cero(self):
        d = DetalleCBU.desde_sku(self.sku, None, "", 0)
        self.assertEqual(d.total_unidades, 0)


class SalaLReglasTests(SimpleTestCase):

    def test_lote_codigo(self):
        self.assertEqual(generar_lote_codigo(date(2026, 1, 14), 8), "SL-2026-01-14-ING-08")
        self.assertEqual(generar_lote_codigo(date(2026, 1, 14), 112), "SL-2026-01-14-ING-112")

    def test_sku_lavado(self):
        self.assertEqual(sku_lavado_desde_sucio("BLA MAN"), "BLA SINCAL")
        self.assertEqual(sku_lavado_desde_sucio("COL MAN"), "COL SINCAL")
        with self.assertRaises(DatosInvalidosError):
            sku_lavado_desde_sucio("BLA 1ERA")

    def test_porcentaje(self):
        self.assertEqual(porcentaje(950, 1000), Decimal("95.00"))
        self.assertEqual(porcentaje(1, 3), Decimal("33.33"))
        self.assertEqual(porcentaje(5, 0), Decimal("0.00"))


class CodigosTests(SimpleTestCase):

    def test_normalizar_codigo(self):
        self.assertEqual(normalizar_codigo("bla-man"), "BLA MAN")
        self.assertEqual(normalizar_codigo("  col   1era "), "COL 1ERA")
        self.assertEqual(normalizar_codigo(None), "")


class DesgloseTests(SimpleTestCase):

    def test_desglose(self):
        d = calcular_desglose(1850, 180, 30)
        self.assertEqual((d.cajas, d.bandejas, d.unidades), (10, 1, 20))
        self.assertEqual(formatear_desglose(d), "10C 1B 20U")

    def test_desglose_egreso_usa_valor_absoluto(self):
        self.assertEqual(formatear_desglose(calcular_desglose(-1800, 180, 30)), "10C")

    def test_desglose_factores_invalidos(self):
        self.assertEqual(calcular_desglose(210, 0, None), calcular_desglose(210, 180, 30))

    def test_desglose_cero(self):
        self.assertEqual(formatear_desglose(calcular_desglose(0)), "0U")
        self.assertEqual(formatear_desglose(None), "-")
