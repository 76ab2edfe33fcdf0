# Generated migration for bodega (vales, kardex, stock, Sala L)

from django.conf import settings
from django.db import migrations, models
import django.core.validators
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Correlativo',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('clave', models.CharField(max_length=40, unique=True)),
                ('ultimo_numero', models.PositiveBigIntegerField(default=0)),
            ],
        ),
        migrations.CreateModel(
            name='Sku',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('creado_en', models.DateTimeField(auto_now_add=True)),
                ('actualizado_en', models.DateTimeField(auto_now=True)),
                ('codigo', models.CharField(max_length=20, unique=True)),
                ('nombre', models.CharField(max_length=80)),
                ('tipo', models.CharField(choices=[('blanco', 'Blanco'), ('color', 'Color'), ('mixto', 'Mixto')], default='blanco', max_length=10)),
                ('calibre', models.CharField(blank=True, default='', max_length=30)),
                ('unidades_por_caja', models.PositiveIntegerField(default=180, validators=[django.core.validators.MinValueValidator(1)])),
                ('unidades_por_bandeja', models.PositiveIntegerField(default=30, validators=[django.core.validators.MinValueValidator(1)])),
                ('activo', models.BooleanField(default=True)),
                ('orden', models.PositiveIntegerField(default=0)),
            ],
            options={
                'verbose_name': 'SKU',
                'verbose_name_plural': 'SKUs',
                'ordering': ['orden', 'codigo'],
            },
        ),
        migrations.CreateModel(
            name='Stock',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('creado_en', models.DateTimeField(auto_now_add=True)),
                ('actualizado_en', models.DateTimeField(auto_now=True)),
                ('sku_codigo', models.CharField(max_length=20)),
                ('sku_nombre', models.CharField(blank=True, default='', max_length=80)),
                ('espacio', models.CharField(choices=[('bodega', 'Bodega'), ('sala_l', 'Sala L')], default='bodega', max_length=10)),
                ('cantidad', models.IntegerField(default=0)),
                ('actualizado_en_operacion', models.DateTimeField(default=django.utils.timezone.now)),
            ],
            options={
                'verbose_name': 'Stock',
                'verbose_name_plural': 'Stocks',
                'indexes': [models.Index(fields=['espacio', 'sku_codigo'], name='bodega_stock_espacio_sku_idx')],
                'constraints': [models.UniqueConstraint(fields=('sku_codigo', 'espacio'), name='uq_stock_sku_espacio')],
            },
        ),
        migrations.CreateModel(
            name='UserProfile',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('creado_en', models.DateTimeField(auto_now_add=True)),
                ('actualizado_en', models.DateTimeField(auto_now=True)),
                ('rol', models.CharField(choices=[('superadmin', 'Super Administrador'), ('admin', 'Administrador'), ('supervisor', 'Supervisor'), ('colaborador', 'Colaborador')], default='colaborador', max_length=15)),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='profile', to=settings.AUTH_USER_MODEL)),
            ],
        ),
        migrations.CreateModel(
            name='Vale',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('creado_en', models.DateTimeField(auto_now_add=True)),
                ('actualizado_en', models.DateTimeField(auto_now=True)),
                ('tipo', models.CharField(choices=[('ingreso', 'Ingreso'), ('egreso', 'Egreso'), ('reingreso', 'Reingreso')], max_length=10)),
                ('estado', models.CharField(choices=[('pendiente', 'Pendiente'), ('validado', 'Validado'), ('rechazado', 'Rechazado')], default='pendiente', max_length=10)),
                ('fecha', models.DateField(default=django.utils.timezone.localdate)),
                ('hora', models.TimeField()),
                ('origen_id', models.CharField(blank=True, default='', max_length=64)),
                ('origen_nombre', models.CharField(max_length=120)),
                ('destino_id', models.CharField(blank=True, default='', max_length=64)),
                ('destino_nombre', models.CharField(max_length=120)),
                ('pabellon_id', models.CharField(blank=True, default='', max_length=64)),
                ('pabellon_nombre', models.CharField(blank=True, default='', max_length=120)),
                ('comentario', models.TextField(blank=True, default='')),
                ('correlativo_dia', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('numero_global', models.PositiveBigIntegerField(unique=True, validators=[django.core.validators.MinValueValidator(1)])),
                ('creado_por_nombre', models.CharField(blank=True, default='', max_length=150)),
                ('validado_por_nombre', models.CharField(blank=True, default='', max_length=150)),
                ('validado_en', models.DateTimeField(blank=True, null=True)),
                ('observaciones', models.TextField(blank=True, default='')),
                ('creado_por', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='vales_creados', to=settings.AUTH_USER_MODEL)),
                ('validado_por', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='vales_validados', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Vale',
                'verbose_name_plural': 'Vales',
                'ordering': ['-fecha', '-numero_global'],
                'indexes': [
                    models.Index(fields=['tipo', 'estado'], name='bodega_vale_tipo_estado_idx'),
                    models.Index(fields=['fecha'], name='bodega_vale_fecha_idx'),
                ],
                'constraints': [models.UniqueConstraint(fields=('fecha', 'tipo', 'correlativo_dia'), name='uq_vale_fecha_tipo_correlativo')],
            },
        ),
        migrations.CreateModel(
            name='Lote',
            fields=[
                ('creado_en', models.DateTimeField(auto_now_add=True)),
                ('actualizado_en', models.DateTimeField(auto_now=True)),
                ('vale', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, primary_key=True, related_name='lote', serialize=False, to='bodega.vale')),
                ('lote_codigo', models.CharField(max_length=40, unique=True)),
                ('estado', models.CharField(choices=[('EN_SALA', 'En Sala L'), ('LAVADO_REGISTRADO', 'Lavado registrado'), ('ENVIADO_A_CALIBRAR', 'Enviado a calibrar'), ('CERRADO', 'Cerrado')], default='EN_SALA', max_length=20)),
                ('vale_referencia', models.CharField(max_length=40)),
                ('fecha_vale', models.DateField()),
                ('correlativo_dia', models.PositiveIntegerField(default=0)),
                ('pabellon_id', models.CharField(blank=True, default='', max_length=64)),
                ('pabellon_nombre', models.CharField(blank=True, default='', max_length=120)),
                ('sku_codigo_sucio', models.CharField(max_length=20)),
                ('sku_nombre_sucio', models.CharField(blank=True, default='', max_length=80)),
                ('ingreso_cajas', models.PositiveIntegerField(default=0)),
                ('ingreso_bandejas', models.PositiveIntegerField(default=0)),
                ('ingreso_unidades', models.PositiveIntegerField(default=0)),
                ('ingreso_total', models.PositiveIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('sku_codigo_lavado', models.CharField(blank=True, default='', max_length=20)),
                ('sku_nombre_lavado', models.CharField(blank=True, default='', max_length=80)),
                ('lavado_cajas', models.PositiveIntegerField(blank=True, null=True)),
                ('lavado_bandejas', models.PositiveIntegerField(blank=True, null=True)),
                ('lavado_unidades', models.PositiveIntegerField(blank=True, null=True)),
                ('lavado_total', models.PositiveIntegerField(blank=True, null=True)),
                ('desecho_kg', models.DecimalField(blank=True, decimal_places=3, max_digits=10, null=True)),
                ('desecho_unidades', models.PositiveIntegerField(blank=True, null=True)),
                ('porcentaje_lavado', models.DecimalField(blank=True, decimal_places=2, max_digits=7, null=True)),
                ('porcentaje_desecho', models.DecimalField(blank=True, decimal_places=2, max_digits=7, null=True)),
                ('ingreso_sala_en', models.DateTimeField(default=django.utils.timezone.now)),
                ('lavado_en', models.DateTimeField(blank=True, null=True)),
                ('ingreso_bodega_en', models.DateTimeField(blank=True, null=True)),
            ],
            options={
                'verbose_name': 'Lote de limpieza',
                'verbose_name_plural': 'Lotes de limpieza',
                'ordering': ['-ingreso_sala_en'],
                'indexes': [models.Index(fields=['estado'], name='bodega_lote_estado_idx')],
            },
        ),
        migrations.CreateModel(
            name='ValeDetalle',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sku_codigo', models.CharField(max_length=20)),
                ('sku_nombre', models.CharField(blank=True, default='', max_length=80)),
                ('cajas', models.PositiveIntegerField(default=0)),
                ('bandejas', models.PositiveIntegerField(default=0)),
                ('unidades', models.PositiveIntegerField(default=0)),
                ('total_unidades', models.PositiveIntegerField(default=0)),
                ('vale', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='detalles', to='bodega.vale')),
            ],
            options={
                'constraints': [models.UniqueConstraint(fields=('vale', 'sku_codigo'), name='uq_vale_detalle_sku')],
            },
        ),
        migrations.CreateModel(
            name='LoteEvento',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tipo', models.CharField(choices=[('LOTE_CREADO', 'Lote creado'), ('LAVADO_REGISTRADO', 'Lavado registrado'), ('ENVIADO_A_CALIBRAR', 'Enviado a calibrar'), ('INGRESO_BODEGA', 'Ingreso a bodega')], max_length=20)),
                ('datos', models.JSONField(blank=True, default=dict)),
                ('usuario_nombre', models.CharField(blank=True, default='', max_length=150)),
                ('creado_en', models.DateTimeField(auto_now_add=True)),
                ('lote', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='eventos', to='bodega.lote')),
                ('usuario', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['creado_en', 'id'],
            },
        ),
        migrations.CreateModel(
            name='Movimiento',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('tipo', models.CharField(choices=[('ingreso', 'Ingreso'), ('egreso', 'Egreso'), ('reingreso', 'Reingreso'), ('ajuste', 'Ajuste')], max_length=10)),
                ('espacio', models.CharField(choices=[('bodega', 'Bodega'), ('sala_l', 'Sala L')], default='bodega', max_length=10)),
                ('sku_codigo', models.CharField(blank=True, max_length=20)),
                ('sku_nombre', models.CharField(blank=True, default='', max_length=80)),
                ('cantidad', models.IntegerField(help_text='Delta con signo: + ingreso/reingreso, - egreso, ajuste libre.')),
                ('fecha', models.DateField(default=django.utils.timezone.localdate)),
                ('hora', models.TimeField(blank=True, null=True)),
                ('vale_referencia', models.CharField(blank=True, default='', max_length=40)),
                ('vale_estado', models.CharField(blank=True, default='', max_length=10)),
                ('lote_codigo', models.CharField(blank=True, default='', max_length=40)),
                ('origen_nombre', models.CharField(blank=True, default='', max_length=120)),
                ('destino_nombre', models.CharField(blank=True, default='', max_length=120)),
                ('razon', models.CharField(blank=True, default='', max_length=250)),
                ('observaciones', models.TextField(blank=True, default='')),
                ('stock_anterior', models.IntegerField(blank=True, null=True)),
                ('stock_nuevo', models.IntegerField(blank=True, null=True)),
                ('usuario_nombre', models.CharField(blank=True, default='', max_length=150)),
                ('creado_en', models.DateTimeField(default=django.utils.timezone.now)),
                ('lote', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='movimientos', to='bodega.lote')),
                ('usuario', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, to=settings.AUTH_USER_MODEL)),
                ('vale', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.PROTECT, related_name='movimientos', to='bodega.vale')),
            ],
            options={
                'verbose_name': 'Movimiento',
                'verbose_name_plural': 'Movimientos',
                'ordering': ['-creado_en', '-id'],
                'indexes': [
                    models.Index(fields=['espacio', 'sku_codigo'], name='bodega_mov_espacio_sku_idx'),
                    models.Index(fields=['tipo'], name='bodega_mov_tipo_idx'),
                    models.Index(fields=['creado_en'], name='bodega_mov_creado_idx'),
                ],
            },
        ),
    ]
