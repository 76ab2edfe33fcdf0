from decimal import Decimal

from bodega.domain.exceptions import (
    CantidadInvalidaError,
    DatosInvalidosError,
    EstadoInvalidoError,
    NoEncontradoError,
)
from bodega.models import Espacio, EstadoLote, Lote, LoteEvento, Movimiento, TipoMovimiento, TipoVale
from bodega.services import lote_service, vale_service

from .base import BodegaTestCase

# 5 cajas + 3 bandejas + 10 u = 900 + 90 + 10
INGRESO_SUCIO_1000 = {"sku": "BLA MAN", "cajas": 5, "bandejas": 3, "unidades": 10}


class LoteCreacionTests(BodegaTestCase):

    def test_vale_sucio_crea_lote_y_no_suma_a_bodega(self):
        vale = self.nuevo_vale([INGRESO_SUCIO_1000], destino_nombre="Sala L", pabellon_nombre="Pabellón 3")

        resultado = vale_service.validar_vale(vale.id, self.supervisor)

        lote = Lote.objects.get()
        self.assertEqual(resultado.lote_id, vale.id)
        self.assertEqual(lote.pk, vale.pk)
        self.assertEqual(lote.id, vale.id)
        self.assertEqual(lote.estado, EstadoLote.EN_SALA)
        self.assertEqual(lote.ingreso_total, 1000)
        self.assertEqual(lote.sku_codigo_sucio, "BLA MAN")
        self.assertEqual(lote.pabellon_nombre, "Pabellón 3")
        self.assertEqual(lote.vale_referencia, "INGRESO #1")
        self.assertEqual(lote.lote_codigo, f"SL-{vale.fecha.isoformat()}-ING-01")

        self.assertEqual(self.stock("BLA MAN", Espacio.BODEGA), 0)
        self.assertEqual(self.stock("BLA MAN", Espacio.SALA_L), 1000)

        mov = Movimiento.objects.get(vale=vale)
        self.assertEqual(mov.espacio, Espacio.SALA_L)
        self.assertEqual(mov.tipo, TipoMovimiento.INGRESO)
        self.assertEqual(mov.cantidad, 1000)
        self.assertEqual(mov.lote, lote)
        self.assertEqual(mov.lote_codigo, lote.lote_codigo)

        self.assertEqual(list(lote.eventos.values_list("tipo", flat=True)), [LoteEvento.LOTE_CREADO])
        self.assertStockConsistente()
        print(f"✅ Vale sucio -> lote {lote.lote_codigo} en Sala L")

    def test_color_sucio(self):
        vale = self.nuevo_vale([{"sku": "COL MAN", "cajas": 1}])
        vale_service.validar_vale(vale.id, self.supervisor)
        self.assertEqual(self.stock("COL MAN", Espacio.SALA_L), 180)
        self.assertTrue(Lote.objects.filter(pk=vale.pk).exists())

    def test_sucio_con_mas_detalles_va_a_bodega(self):
        vale = self.nuevo_vale([INGRESO_SUCIO_1000, {"sku": "BLA 1ERA", "cajas": 1}])
        resultado = vale_service.validar_vale(vale.id, self.supervisor)

        self.assertIsNone(resultado.lote_id)
        self.assertFalse(Lote.objects.exists())
        self.assertEqual(self.stock("BLA MAN", Espacio.BODEGA), 1000)
        self.assertEqual(self.stock("BLA MAN", Espacio.SALA_L), 0)

    def test_egreso_sucio_no_crea_lote(self):
        vale = self.nuevo_vale([INGRESO_SUCIO_1000], tipo=TipoVale.EGRESO)
        vale_service.validar_vale(vale.id, self.supervisor)
        self.assertFalse(Lote.objects.exists())
        self.assertEqual(self.stock("BLA MAN", Espacio.BODEGA), -1000)

    def test_un_lote_por_vale(self):
        vale = self.nuevo_vale([INGRESO_SUCIO_1000])
        vale_service.validar_vale(vale.id, self.supervisor)

        with self.assertRaises(EstadoInvalidoError):
            vale_service.validar_vale(vale.id, self.supervisor)

        vale.refresh_from_db()
        with self.assertRaises(EstadoInvalidoError):
            lote_service.crear_lote_desde_vale(vale, vale.detalles.get(), self.supervisor)

        self.assertEqual(Lote.objects.filter(vale=vale).count(), 1)
        self.assertEqual(self.stock("BLA MAN", Espacio.SALA_L), 1000)


class LoteFlujoTests(BodegaTestCase):

    def setUp(self):
        vale = self.nuevo_vale([INGRESO_SUCIO_1000])
        self.lote_id = vale_service.validar_vale(vale.id, self.supervisor).lote_id

    def lavar(self, **kwargs):
        datos = {"cajas": 5, "desecho_kg": Decimal("1.2")}
        datos.update(kwargs)
        return lote_service.registrar_lavado(self.lote_id, self.colaborador, **datos)

    def test_registrar_lavado(self):
        lote = self.lavar()

        self.assertEqual(lote.estado, EstadoLote.LAVADO_REGISTRADO)
        self.assertEqual(lote.sku_codigo_lavado, "BLA SINCAL")
        self.assertEqual(lote.lavado_total, 900)
        self.assertEqual(lote.desecho_kg, Decimal("1.200"))
        self.assertEqual(lote.desecho_unidades, 20)
        self.assertEqual(lote.porcentaje_lavado, Decimal("90.00"))
        self.assertEqual(lote.porcentaje_desecho, Decimal("2.00"))
        self.assertIsNotNone(lote.lavado_en)
        # Registrar el lavado no mueve stock
        self.assertEqual(Movimiento.objects.count(), 1)
        print("✅ Lavado registrado: 90% lavado, 20 u de desecho")

    def test_lavado_con_redondeo(self):
        lote = self.lavar(desecho_kg="1.21", redondeo="ceil")
        self.assertEqual(lote.desecho_unidades, 21)

    def test_lavado_en_cero(self):
        with self.assertRaises(CantidadInvalidaError):
            self.lavar(cajas=0)
        self.assertEqual(Lote.objects.get(pk=self.lote_id).estado, EstadoLote.EN_SALA)

    def test_desecho_negativo(self):
        with self.assertRaises(CantidadInvalidaError):
            self.lavar(desecho_kg="-1")

    def test_porcentaje_lavado_muy_alto(self):
        vale = self.nuevo_vale([{"sku": "BLA MAN", "unidades": 1}])
        lote_id = vale_service.validar_vale(vale.id, self.supervisor).lote_id

        lote = lote_service.registrar_lavado(lote_id, self.colaborador, cajas=6)

        self.assertEqual(lote.lavado_total, 1080)
        self.assertEqual(lote.porcentaje_lavado, Decimal("108000.00"))
        self.assertEqual(Lote.objects.get(pk=lote_id).estado, EstadoLote.LAVADO_REGISTRADO)

    def test_no_se_saltan_estados(self):
        with self.assertRaises(EstadoInvalidoError):
            lote_service.enviar_a_calibrar(self.lote_id, self.colaborador)
        with self.assertRaises(EstadoInvalidoError):
            lote_service.ingresar_a_bodega(self.lote_id, self.colaborador)

        self.lavar()
        with self.assertRaises(EstadoInvalidoError):
            self.lavar()
        with self.assertRaises(EstadoInvalidoError):
            lote_service.ingresar_a_bodega(self.lote_id, self.colaborador)

    def test_flujo_completo_cierra_en_bodega(self):
        self.lavar()
        lote_service.enviar_a_calibrar(self.lote_id, self.colaborador)
        lote = lote_service.ingresar_a_bodega(self.lote_id, self.supervisor)

        self.assertEqual(lote.estado, EstadoLote.CERRADO)
        self.assertIsNotNone(lote.ingreso_bodega_en)

        self.assertEqual(self.stock("BLA SINCAL", Espacio.BODEGA), 900)
        self.assertEqual(self.stock("DES", Espacio.BODEGA), 20)
        self.assertEqual(self.stock("BLA MAN", Espacio.SALA_L), 0)
        self.assertEqual(self.stock("BLA MAN", Espacio.BODEGA), 0)

        reingreso = Movimiento.objects.get(lote=lote, sku_codigo="BLA SINCAL")
        self.assertEqual(reingreso.tipo, TipoMovimiento.REINGRESO)
        self.assertEqual(reingreso.cantidad, 900)
        self.assertEqual(reingreso.vale_id, self.lote_id)

        self.assertEqual(
            list(lote.eventos.values_list("tipo", flat=True)),
            [
                LoteEvento.LOTE_CREADO,
                LoteEvento.LAVADO_REGISTRADO,
                LoteEvento.ENVIADO_A_CALIBRAR,
                LoteEvento.INGRESO_BODEGA,
            ],
        )
        self.assertStockConsistente()

        with self.assertRaises(EstadoInvalidoError):
            lote_service.ingresar_a_bodega(self.lote_id, self.supervisor)
        print("✅ Lote cerrado: +900 BLA SINCAL en bodega")

    def test_sin_desecho_no_mueve_des(self):
        self.lavar(desecho_kg=0)
        lote_service.enviar_a_calibrar(self.lote_id, self.colaborador)
        lote_service.ingresar_a_bodega(self.lote_id, self.colaborador)

        self.assertFalse(Movimiento.objects.filter(sku_codigo="DES").exists())


class CalibracionTests(BodegaTestCase):
    """Lote cerrado con 900 BLA SINCAL en bodega (y 20 DES del lavado)."""

    def setUp(self):
        vale = self.nuevo_vale([INGRESO_SUCIO_1000])
        self.lote_id = vale_service.validar_vale(vale.id, self.supervisor).lote_id
        lote_service.registrar_lavado(self.lote_id, self.colaborador, cajas=5, desecho_kg="1.2")
        lote_service.enviar_a_calibrar(self.lote_id, self.colaborador)
        lote_service.ingresar_a_bodega(self.lote_id, self.colaborador)

    def calibrar(self, detalles, **kwargs):
        return lote_service.calibrar_lote(self.lote_id, self.supervisor, detalles=detalles, **kwargs)

    def test_calibrar_convierte_sincal(self):
        lote = self.calibrar(
            [{"sku": "BLA 1ERA", "cajas": 3}, {"sku": "BLA 2DA", "cajas": 1, "bandejas": 2}],
            desecho_kg="0.6",
        )

        self.assertEqual(lote.estado, EstadoLote.CALIBRADO_OK)
        self.assertIsNotNone(lote.calibrado_en)
        self.assertEqual(lote.calibracion["total_calibrado"], 540 + 240)
        self.assertEqual(lote.calibracion["desecho_unidades"], 10)
        self.assertEqual(lote.calibracion["total_salida"], 790)
        self.assertEqual(lote.calibracion["diferencia_vs_sincal"], 790 - 900)

        self.assertEqual(self.stock("BLA SINCAL"), 900 - 790)
        self.assertEqual(self.stock("BLA 1ERA"), 540)
        self.assertEqual(self.stock("BLA 2DA"), 240)
        self.assertEqual(self.stock("DES"), 20 + 10)

        egreso = Movimiento.objects.get(lote=lote, sku_codigo="BLA SINCAL", tipo=TipoMovimiento.EGRESO)
        self.assertEqual(egreso.cantidad, -790)
        self.assertEqual(egreso.espacio, Espacio.BODEGA)
        ingreso = Movimiento.objects.get(lote=lote, sku_codigo="BLA 1ERA")
        self.assertEqual(ingreso.tipo, TipoMovimiento.INGRESO)
        self.assertEqual(ingreso.vale_id, self.lote_id)

        self.assertEqual(lote.eventos.last().tipo, LoteEvento.CALIBRACION_CONFIRMADA)
        self.assertStockConsistente()
        print("✅ Calibración: 790 u salen de BLA SINCAL hacia calibrados + DES")

    def test_sin_desecho_no_mueve_des(self):
        self.calibrar([{"sku": "BLA 1ERA", "cajas": 5}])
        self.assertEqual(self.stock("BLA SINCAL"), 0)
        self.assertEqual(self.stock("DES"), 20)

    def test_stock_sincal_insuficiente(self):
        antes = Movimiento.objects.count()
        with self.assertRaises(CantidadInvalidaError):
            self.calibrar([{"sku": "BLA 1ERA", "cajas": 5, "unidades": 1}])

        self.assertEqual(Movimiento.objects.count(), antes)
        self.assertEqual(self.stock("BLA SINCAL"), 900)
        self.assertEqual(Lote.objects.get(pk=self.lote_id).estado, EstadoLote.CERRADO)

    def test_desecho_cuenta_en_la_salida(self):
        # 900 calibradas + 1 u de desecho superan las 900 disponibles
        with self.assertRaises(CantidadInvalidaError):
            self.calibrar([{"sku": "BLA 1ERA", "cajas": 5}], desecho_kg="0.06")

    def test_destinos_no_calibrables(self):
        for sku in ("BLA SINCAL", "COL SINCAL", "DES", "BLA MAN"):
            with self.assertRaises(DatosInvalidosError):
                self.calibrar([{"sku": sku, "cajas": 1}])
        with self.assertRaises(DatosInvalidosError):
            self.calibrar([])
        with self.assertRaises(DatosInvalidosError):
            self.calibrar([{"sku": "BLA 1ERA", "cajas": 1}, {"sku": "BLA 1ERA", "cajas": 1}])
        with self.assertRaises(CantidadInvalidaError):
            self.calibrar([{"sku": "BLA 1ERA", "cajas": 0}])
        self.assertEqual(self.stock("BLA SINCAL"), 900)

    def test_no_se_recalibra(self):
        self.calibrar([{"sku": "BLA 1ERA", "cajas": 1}])
        with self.assertRaises(EstadoInvalidoError):
            self.calibrar([{"sku": "BLA 1ERA", "cajas": 1}])
        self.assertEqual(self.stock("BLA 1ERA"), 180)

    def test_requiere_lote_cerrado(self):
        vale = self.nuevo_vale([{"sku": "COL MAN", "cajas": 1}])
        otro = vale_service.validar_vale(vale.id, self.supervisor).lote_id
        with self.assertRaises(EstadoInvalidoError):
            lote_service.calibrar_lote(otro, self.supervisor, detalles=[{"sku": "COL 1ERA", "cajas": 1}])

    def test_avanzar_a_calibrado(self):
        lote = lote_service.avanzar_lote(
            self.lote_id,
            EstadoLote.CALIBRADO_OK,
            self.colaborador,
            detalles=[{"sku": "BLA EXTRA", "bandejas": 10}],
        )
        self.assertEqual(lote.estado, EstadoLote.CALIBRADO_OK)
        self.assertEqual(self.stock("BLA EXTRA"), 300)
        self.assertEqual(self.stock("BLA SINCAL"), 600)


class AvanzarLoteTests(BodegaTestCase):

    def setUp(self):
        vale = self.nuevo_vale([{"sku": "COL MAN", "cajas": 2}])
        self.lote_id = vale_service.validar_vale(vale.id, self.supervisor).lote_id

    def test_avanzar_paso_a_paso(self):
        lote = lote_service.avanzar_lote(
            self.lote_id,
            EstadoLote.LAVADO_REGISTRADO,
            self.colaborador,
            cajas=1,
            bandejas=5,
            desecho_kg="0.6",
        )
        self.assertEqual(lote.lavado_total, 330)
        self.assertEqual(lote.sku_codigo_lavado, "COL SINCAL")
        self.assertEqual(lote.desecho_unidades, 10)

        lote = lote_service.avanzar_lote(self.lote_id, EstadoLote.ENVIADO_A_CALIBRAR, self.colaborador)
        self.assertEqual(lote.estado, EstadoLote.ENVIADO_A_CALIBRAR)

        lote = lote_service.avanzar_lote(self.lote_id, EstadoLote.CERRADO, self.colaborador)
        self.assertEqual(lote.estado, EstadoLote.CERRADO)
        self.assertEqual(self.stock("COL SINCAL"), 330)

    def test_no_vuelve_a_en_sala(self):
        with self.assertRaises(EstadoInvalidoError):
            lote_service.avanzar_lote(self.lote_id, EstadoLote.EN_SALA, self.colaborador)

    def test_estado_desconocido(self):
        with self.assertRaises(DatosInvalidosError):
            lote_service.avanzar_lote(self.lote_id, "PERDIDO", self.colaborador)

    def test_lote_inexistente(self):
        with self.assertRaises(NoEncontradoError):
            lote_service.avanzar_lote(999999, EstadoLote.ENVIADO_A_CALIBRAR, self.colaborador)
        with self.assertRaises(NoEncontradoError):
            lote_service.avanzar_lote(999999, EstadoLote.EN_SALA, self.colaborador)
