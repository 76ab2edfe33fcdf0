from bodega.domain.exceptions import (
    CantidadInvalidaError,
    DatosInvalidosError,
    NoAutorizadoError,
    NoEncontradoError,
)
from bodega.models import Espacio, Movimiento, TipoMovimiento
from bodega.services.ajuste_service import aplicar_ajuste

from .base import BodegaTestCase


class AjusteStockTests(BodegaTestCase):

    def ajustar(self, modo, magnitud, razon="conteo físico", **kwargs):
        return aplicar_ajuste("BLA 1ERA", modo, magnitud, razon, self.superadmin, **kwargs)

    def test_incrementar_y_decrementar(self):
        r1 = self.ajustar("incrementar", 100)
        r2 = self.ajustar("decrementar", 30)

        self.assertEqual(r1.delta, 100)
        self.assertEqual(r2.delta, -30)
        self.assertEqual((r2.stock_anterior, r2.stock_nuevo), (100, 70))
        self.assertEqual(self.stock("BLA 1ERA"), 70)
        self.assertEqual(
            list(Movimiento.objects.order_by("id").values_list("tipo", "cantidad")),
            [(TipoMovimiento.AJUSTE, 100), (TipoMovimiento.AJUSTE, -30)],
        )
        print("✅ Ajustes incrementar / decrementar")

    def test_establecer_calcula_delta(self):
        self.ajustar("incrementar", 70)
        r = self.ajustar("establecer", 500)

        self.assertEqual(r.movimiento.cantidad, 430)
        self.assertEqual(self.stock("BLA 1ERA"), 500)

        r = self.ajustar("establecer", 0)
        self.assertEqual(r.movimiento.cantidad, -500)
        self.assertEqual(self.stock("BLA 1ERA"), 0)
        self.assertStockConsistente()

    def test_establecer_sin_cambio(self):
        self.ajustar("incrementar", 50)
        with self.assertRaises(CantidadInvalidaError):
            self.ajustar("establecer", 50)
        self.assertEqual(Movimiento.objects.count(), 1)

    def test_magnitud_cero(self):
        with self.assertRaises(CantidadInvalidaError):
            self.ajustar("incrementar", 0)

    def test_razon_obligatoria(self):
        with self.assertRaises(DatosInvalidosError):
            self.ajustar("incrementar", 10, razon="  ")
        self.assertFalse(Movimiento.objects.exists())

    def test_razon_queda_en_el_movimiento(self):
        r = self.ajustar("decrementar", 12, razon="quiebre en traslado", observaciones="pallet 4")
        mov = Movimiento.objects.get(pk=r.movimiento.pk)
        self.assertEqual(mov.razon, "quiebre en traslado")
        self.assertEqual(mov.observaciones, "pallet 4")
        self.assertEqual(mov.usuario, self.superadmin)
        self.assertIsNone(mov.vale_id)

    def test_magnitud_negativa(self):
        with self.assertRaises(DatosInvalidosError):
            self.ajustar("incrementar", -5)
        with self.assertRaises(DatosInvalidosError):
            self.ajustar("establecer", -5)

    def test_magnitud_no_numerica(self):
        with self.assertRaises(DatosInvalidosError):
            self.ajustar("incrementar", "muchos")

    def test_magnitud_fraccionaria(self):
        with self.assertRaises(DatosInvalidosError):
            self.ajustar("incrementar", 1.9)
        with self.assertRaises(DatosInvalidosError):
            self.ajustar("establecer", "250.5")
        self.assertFalse(Movimiento.objects.exists())
        self.assertEqual(self.stock("BLA 1ERA"), 0)

    def test_magnitud_entera_como_texto(self):
        r = self.ajustar("incrementar", "40")
        self.assertEqual(r.delta, 40)

    def test_modo_invalido(self):
        with self.assertRaises(DatosInvalidosError):
            self.ajustar("duplicar", 5)

    def test_solo_superadmin(self):
        with self.assertRaises(NoAutorizadoError):
            aplicar_ajuste("BLA 1ERA", "incrementar", 10, "conteo", self.supervisor)
        with self.assertRaises(NoAutorizadoError):
            aplicar_ajuste("BLA 1ERA", "incrementar", 10, "conteo", self.colaborador)
        self.assertFalse(Movimiento.objects.exists())

    def test_sku_inexistente(self):
        with self.assertRaises(NoEncontradoError):
            aplicar_ajuste("NO EXISTE", "incrementar", 10, "conteo", self.superadmin)

    def test_puede_quedar_negativo(self):
        self.ajustar("decrementar", 25)
        self.assertEqual(self.stock("BLA 1ERA"), -25)

    def test_ajuste_en_sala_l(self):
        self.ajustar("incrementar", 40, espacio=Espacio.SALA_L)
        self.assertEqual(self.stock("BLA 1ERA", Espacio.SALA_L), 40)
        self.assertEqual(self.stock("BLA 1ERA", Espacio.BODEGA), 0)
