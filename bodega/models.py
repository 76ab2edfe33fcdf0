from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models, transaction
from django.utils import timezone

from bodega.domain.exceptions import EstadoInvalidoError


# ============================================================
# Base
# ============================================================
class TimeStampedModel(models.Model):
    creado_en = models.DateTimeField(auto_now_add=True)
    actualizado_en = models.DateTimeField(auto_now=True)

    class Meta:
        abstract = True


# ============================================================
# Choices
# ============================================================
class TipoVale(models.TextChoices):
    INGRESO = "ingreso", "Ingreso"
    EGRESO = "egreso", "Egreso"
    REINGRESO = "reingreso", "Reingreso"


class EstadoVale(models.TextChoices):
    PENDIENTE = "pendiente", "Pendiente"
    VALIDADO = "validado", "Validado"
    RECHAZADO = "rechazado", "Rechazado"


class TipoMovimiento(models.TextChoices):
    INGRESO = "ingreso", "Ingreso"
    EGRESO = "egreso", "Egreso"
    REINGRESO = "reingreso", "Reingreso"
    AJUSTE = "ajuste", "Ajuste"


class Espacio(models.TextChoices):
    BODEGA = "bodega", "Bodega"
    SALA_L = "sala_l", "Sala L"


class EstadoLote(models.TextChoices):
    EN_SALA = "EN_SALA", "En Sala L"
    LAVADO_REGISTRADO = "LAVADO_REGISTRADO", "Lavado registrado"
    ENVIADO_A_CALIBRAR = "ENVIADO_A_CALIBRAR", "Enviado a calibrar"
    CERRADO = "CERRADO", "Cerrado"
    CALIBRADO_OK = "CALIBRADO_OK", "Calibrado"


# ============================================================
# Catálogo de SKUs
# ============================================================
class Sku(TimeStampedModel):
    BLANCO = "blanco"
    COLOR = "color"
    MIXTO = "mixto"
    TIPO_CHOICES = [(BLANCO, "Blanco"), (COLOR, "Color"), (MIXTO, "Mixto")]

    codigo = models.CharField(max_length=20, unique=True)
    nombre = models.CharField(max_length=80)
    tipo = models.CharField(max_length=10, choices=TIPO_CHOICES, default=BLANCO)
    calibre = models.CharField(max_length=30, blank=True, default="")
    unidades_por_caja = models.PositiveIntegerField(default=180, validators=[MinValueValidator(1)])
    unidades_por_bandeja = models.PositiveIntegerField(default=30, validators=[MinValueValidator(1)])
    activo = models.BooleanField(default=True)
    orden = models.PositiveIntegerField(default=0)

    class Meta:
        verbose_name = "SKU"
        verbose_name_plural = "SKUs"
        ordering = ["orden", "codigo"]

    def __str__(self):
        return f"{self.codigo} ({self.nombre})"

    def clean(self):
        if self.codigo:
            self.codigo = " ".join(self.codigo.split()).upper()

    def total_unidades(self, cajas: int, bandejas: int, unidades: int) -> int:
        return (
            int(cajas) * self.unidades_por_caja
            + int(bandejas) * self.unidades_por_bandeja
            + int(unidades)
        )


# ============================================================
# Usuarios / Roles
# ============================================================
class UserProfile(TimeStampedModel):
    class Rol(models.TextChoices):
        SUPERADMIN = "superadmin", "Super Administrador"
        ADMIN = "admin", "Administrador"
        SUPERVISOR = "supervisor", "Supervisor"
        COLABORADOR = "colaborador", "Colaborador"

    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="profile")
    rol = models.CharField(max_length=15, choices=Rol.choices, default=Rol.COLABORADOR)

    def __str__(self):
        return f"{self.user.username} ({self.rol})"

    @property
    def nombre(self) -> str:
        return self.user.get_full_name() or self.user.get_username()


# ============================================================
# Correlativos
# ============================================================
class Correlativo(models.Model):
    GLOBAL = "GLOBAL"

    clave = models.CharField(max_length=40, unique=True)
    ultimo_numero = models.PositiveBigIntegerField(default=0)

    def __str__(self):
        return f"{self.clave} -> {self.ultimo_numero}"

    @classmethod
    @transaction.atomic
    def siguiente(cls, clave: str) -> int:
        corr, _ = cls.objects.select_for_update().get_or_create(clave=clave)
        corr.ultimo_numero += 1
        corr.save(update_fields=["ultimo_numero"])
        return corr.ultimo_numero


# ============================================================
# Vales
# ============================================================
class Vale(TimeStampedModel):
    tipo = models.CharField(max_length=10, choices=TipoVale.choices)
    estado = models.CharField(max_length=10, choices=EstadoVale.choices, default=EstadoVale.PENDIENTE)

    fecha = models.DateField(default=timezone.localdate)
    hora = models.TimeField()

    origen_id = models.CharField(max_length=64, blank=True, default="")
    origen_nombre = models.CharField(max_length=120)
    destino_id = models.CharField(max_length=64, blank=True, default="")
    destino_nombre = models.CharField(max_length=120)

    pabellon_id = models.CharField(max_length=64, blank=True, default="")
    pabellon_nombre = models.CharField(max_length=120, blank=True, default="")

    comentario = models.TextField(blank=True, default="")

    correlativo_dia = models.PositiveIntegerField(validators=[MinValueValidator(1)])
    numero_global = models.PositiveBigIntegerField(unique=True, validators=[MinValueValidator(1)])

    creado_por = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.PROTECT, related_name="vales_creados"
    )
    creado_por_nombre = models.CharField(max_length=150, blank=True, default="")

    validado_por = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="vales_validados",
        null=True,
        blank=True,
    )
    validado_por_nombre = models.CharField(max_length=150, blank=True, default="")
    validado_en = models.DateTimeField(null=True, blank=True)

    # Anotación de validación / motivo de rechazo (no es el comentario de creación)
    observaciones = models.TextField(blank=True, default="")

    class Meta:
        verbose_name = "Vale"
        verbose_name_plural = "Vales"
        ordering = ["-fecha", "-numero_global"]
        constraints = [
            models.UniqueConstraint(fields=["fecha", "tipo", "correlativo_dia"], name="uq_vale_fecha_tipo_correlativo"),
        ]
        indexes = [
            models.Index(fields=["tipo", "estado"], name="bodega_vale_tipo_estado_idx"),
            models.Index(fields=["fecha"], name="bodega_vale_fecha_idx"),
        ]

    def __str__(self):
        return f"{self.referencia} ({self.fecha:%Y-%m-%d})"

    @property
    def referencia(self) -> str:
        return f"{self.tipo.upper()} #{self.correlativo_dia}"

    @property
    def es_pendiente(self) -> bool:
        return self.estado == EstadoVale.PENDIENTE

    def clean(self):
        if self.estado == EstadoVale.PENDIENTE:
            if self.validado_por_id or self.validado_en:
                raise ValidationError("Un vale pendiente no puede tener datos de validación.")
            return

        if not self.validado_por_id or not self.validado_en:
            raise ValidationError("Un vale validado o rechazado requiere usuario y fecha de validación.")

        if self.estado == EstadoVale.RECHAZADO and not (self.observaciones or "").strip():
            raise ValidationError({"observaciones": "Las observaciones son obligatorias para rechazar un vale."})


class ValeDetalle(models.Model):
    vale = models.ForeignKey(Vale, on_delete=models.CASCADE, related_name="detalles")
    sku_codigo = models.CharField(max_length=20)
    sku_nombre = models.CharField(max_length=80, blank=True, default="")

    cajas = models.PositiveIntegerField(default=0)
    bandejas = models.PositiveIntegerField(default=0)
    unidades = models.PositiveIntegerField(default=0)
    total_unidades = models.PositiveIntegerField(default=0)

    class Meta:
        constraints = [
            models.UniqueConstraint(fields=["vale", "sku_codigo"], name="uq_vale_detalle_sku"),
        ]

    def __str__(self):
        return f"{self.sku_codigo} x {self.total_unidades}"

    def _exigir_vale_pendiente(self):
        estado = Vale.objects.filter(pk=self.vale_id).values_list("estado", flat=True).first()
        if estado is not None and estado != EstadoVale.PENDIENTE:
            raise EstadoInvalidoError("Los detalles de un vale no pendiente no se pueden modificar.")

    def recalcular_total(self, sku: Sku | None = None) -> int:
        if sku is None:
            sku = Sku.objects.get(codigo=self.sku_codigo)
        self.total_unidades = sku.total_unidades(self.cajas, self.bandejas, self.unidades)
        return self.total_unidades

    def save(self, *args, **kwargs):
        self._exigir_vale_pendiente()
        sku = Sku.objects.filter(codigo=self.sku_codigo).first()
        if sku is not None:
            self.recalcular_total(sku)
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        self._exigir_vale_pendiente()
        return super().delete(*args, **kwargs)


# ============================================================
# Lotes de limpieza (Sala L)
# ============================================================
class Lote(TimeStampedModel):
    # pk = id del vale de ingreso (1:1)
    vale = models.OneToOneField(Vale, on_delete=models.PROTECT, primary_key=True, related_name="lote")
    lote_codigo = models.CharField(max_length=40, unique=True)
    estado = models.CharField(max_length=20, choices=EstadoLote.choices, default=EstadoLote.EN_SALA)

    vale_referencia = models.CharField(max_length=40)
    fecha_vale = models.DateField()
    correlativo_dia = models.PositiveIntegerField(default=0)

    pabellon_id = models.CharField(max_length=64, blank=True, default="")
    pabellon_nombre = models.CharField(max_length=120, blank=True, default="")

    sku_codigo_sucio = models.CharField(max_length=20)
    sku_nombre_sucio = models.CharField(max_length=80, blank=True, default="")

    ingreso_cajas = models.PositiveIntegerField(default=0)
    ingreso_bandejas = models.PositiveIntegerField(default=0)
    ingreso_unidades = models.PositiveIntegerField(default=0)
    ingreso_total = models.PositiveIntegerField(validators=[MinValueValidator(1)])

    sku_codigo_lavado = models.CharField(max_length=20, blank=True, default="")
    sku_nombre_lavado = models.CharField(max_length=80, blank=True, default="")
    lavado_cajas = models.PositiveIntegerField(null=True, blank=True)
    lavado_bandejas = models.PositiveIntegerField(null=True, blank=True)
    lavado_unidades = models.PositiveIntegerField(null=True, blank=True)
    lavado_total = models.PositiveIntegerField(null=True, blank=True)

    desecho_kg = models.DecimalField(max_digits=10, decimal_places=3, null=True, blank=True)
    desecho_unidades = models.PositiveIntegerField(null=True, blank=True)
    porcentaje_lavado = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)
    porcentaje_desecho = models.DecimalField(max_digits=14, decimal_places=2, null=True, blank=True)

    ingreso_sala_en = models.DateTimeField(default=timezone.now)
    lavado_en = models.DateTimeField(null=True, blank=True)
    ingreso_bodega_en = models.DateTimeField(null=True, blank=True)

    # Calibración en bodega: SINCAL -> SKUs calibrados + DES
    calibracion = models.JSONField(null=True, blank=True)
    calibrado_en = models.DateTimeField(null=True, blank=True)

    class Meta:
        verbose_name = "Lote de limpieza"
        verbose_name_plural = "Lotes de limpieza"
        ordering = ["-ingreso_sala_en"]
        indexes = [
            models.Index(fields=["estado"], name="bodega_lote_estado_idx"),
        ]

    def __str__(self):
        return f"{self.lote_codigo} [{self.estado}]"

    @property
    def id(self):
        return self.vale_id

    def clean(self):
        lavado_registrado = self.estado != EstadoLote.EN_SALA
        if lavado_registrado and not self.lavado_total:
            raise ValidationError("Un lote con lavado registrado requiere total lavado > 0.")
        if not lavado_registrado and self.lavado_total is not None:
            raise ValidationError("Un lote en sala no puede tener lavado registrado.")
        if (self.estado == EstadoLote.CALIBRADO_OK) != bool(self.calibracion):
            raise ValidationError("Solo un lote calibrado lleva datos de calibración.")


class LoteEvento(models.Model):
    LOTE_CREADO = "LOTE_CREADO"
    LAVADO_REGISTRADO = "LAVADO_REGISTRADO"
    ENVIADO_A_CALIBRAR = "ENVIADO_A_CALIBRAR"
    INGRESO_BODEGA = "INGRESO_BODEGA"
    CALIBRACION_CONFIRMADA = "CALIBRACION_CONFIRMADA"
    TIPO_CHOICES = [
        (LOTE_CREADO, "Lote creado"),
        (LAVADO_REGISTRADO, "Lavado registrado"),
        (ENVIADO_A_CALIBRAR, "Enviado a calibrar"),
        (INGRESO_BODEGA, "Ingreso a bodega"),
        (CALIBRACION_CONFIRMADA, "Calibración confirmada"),
    ]

    lote = models.ForeignKey(Lote, on_delete=models.CASCADE, related_name="eventos")
    tipo = models.CharField(max_length=30, choices=TIPO_CHOICES)
    datos = models.JSONField(default=dict, blank=True)
    usuario = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, null=True, blank=True)
    usuario_nombre = models.CharField(max_length=150, blank=True, default="")
    creado_en = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["creado_en", "id"]

    def __str__(self):
        return f"{self.lote_id} {self.tipo}"


# ============================================================
# Stock + Movimientos (kardex)
# ============================================================
class Stock(TimeStampedModel):
    sku_codigo = models.CharField(max_length=20)
    sku_nombre = models.CharField(max_length=80, blank=True, default="")
    espacio = models.CharField(max_length=10, choices=Espacio.choices, default=Espacio.BODEGA)
    cantidad = models.IntegerField(default=0)
    actualizado_en_operacion = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "Stock"
        verbose_name_plural = "Stocks"
        constraints = [
            models.UniqueConstraint(fields=["sku_codigo", "espacio"], name="uq_stock_sku_espacio"),
        ]
        indexes = [
            models.Index(fields=["espacio", "sku_codigo"], name="bodega_stock_espacio_sku_idx"),
        ]

    def __str__(self):
        return f"{self.sku_codigo} @ {self.get_espacio_display()} = {self.cantidad}"


class Movimiento(models.Model):
    tipo = models.CharField(max_length=10, choices=TipoMovimiento.choices)
    espacio = models.CharField(max_length=10, choices=Espacio.choices, default=Espacio.BODEGA)

    sku_codigo = models.CharField(max_length=20, blank=True)
    sku_nombre = models.CharField(max_length=80, blank=True, default="")
    cantidad = models.IntegerField(help_text="Delta con signo: + ingreso/reingreso, - egreso, ajuste libre.")

    fecha = models.DateField(default=timezone.localdate)
    hora = models.TimeField(null=True, blank=True)

    vale = models.ForeignKey(Vale, on_delete=models.PROTECT, null=True, blank=True, related_name="movimientos")
    vale_referencia = models.CharField(max_length=40, blank=True, default="")
    vale_estado = models.CharField(max_length=10, blank=True, default="")

    lote = models.ForeignKey(Lote, on_delete=models.PROTECT, null=True, blank=True, related_name="movimientos")
    lote_codigo = models.CharField(max_length=40, blank=True, default="")

    origen_nombre = models.CharField(max_length=120, blank=True, default="")
    destino_nombre = models.CharField(max_length=120, blank=True, default="")

    razon = models.CharField(max_length=250, blank=True, default="")
    observaciones = models.TextField(blank=True, default="")

    # Saldo del snapshot antes y después de aplicar el movimiento
    stock_anterior = models.IntegerField(null=True, blank=True)
    stock_nuevo = models.IntegerField(null=True, blank=True)

    usuario = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.PROTECT, null=True, blank=True)
    usuario_nombre = models.CharField(max_length=150, blank=True, default="")

    creado_en = models.DateTimeField(default=timezone.now)

    class Meta:
        verbose_name = "Movimiento"
        verbose_name_plural = "Movimientos"
        ordering = ["-creado_en", "-id"]
        indexes = [
            models.Index(fields=["espacio", "sku_codigo"], name="bodega_mov_espacio_sku_idx"),
            models.Index(fields=["tipo"], name="bodega_mov_tipo_idx"),
            models.Index(fields=["creado_en"], name="bodega_mov_creado_idx"),
        ]

    def __str__(self):
        return f"{self.get_tipo_display()} {self.cantidad:+d} {self.sku_codigo} @ {self.get_espacio_display()}"

    def clean(self):
        if self.tipo in (TipoMovimiento.INGRESO, TipoMovimiento.REINGRESO) and self.cantidad <= 0:
            raise ValidationError({"cantidad": "Ingreso/reingreso requieren cantidad > 0."})
        if self.tipo == TipoMovimiento.EGRESO and self.cantidad >= 0:
            raise ValidationError({"cantidad": "Egreso requiere cantidad < 0."})
        if self.tipo == TipoMovimiento.AJUSTE and self.cantidad == 0:
            raise ValidationError({"cantidad": "Ajuste requiere cantidad distinta de 0."})
        if self.tipo == TipoMovimiento.AJUSTE and not (self.razon or "").strip():
            raise ValidationError({"razon": "Ajuste requiere razón."})

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise EstadoInvalidoError("Los movimientos son inmutables; registra un nuevo movimiento.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise EstadoInvalidoError("Los movimientos no se pueden eliminar.")
