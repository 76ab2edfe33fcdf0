from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("bodega", "0001_initial"),
    ]

    operations = [
        migrations.AlterField(
            model_name="lote",
            name="estado",
            field=models.CharField(
                choices=[
                    ("EN_SALA", "En Sala L"),
                    ("LAVADO_REGISTRADO", "Lavado registrado"),
                    ("ENVIADO_A_CALIBRAR", "Enviado a calibrar"),
                    ("CERRADO", "Cerrado"),
                    ("CALIBRADO_OK", "Calibrado"),
                ],
                default="EN_SALA",
                max_length=20,
            ),
        ),
        migrations.AlterField(
            model_name="lote",
            name="porcentaje_lavado",
            field=models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True),
        ),
        migrations.AlterField(
            model_name="lote",
            name="porcentaje_desecho",
            field=models.DecimalField(blank=True, decimal_places=2, max_digits=14, null=True),
        ),
        migrations.AddField(
            model_name="lote",
            name="calibracion",
            field=models.JSONField(blank=True, null=True),
        ),
        migrations.AddField(
            model_name="lote",
            name="calibrado_en",
            field=models.DateTimeField(blank=True, null=True),
        ),
        migrations.AlterField(
            model_name="loteevento",
            name="tipo",
            field=models.CharField(
                choices=[
                    ("LOTE_CREADO", "Lote creado"),
                    ("LAVADO_REGISTRADO", "Lavado registrado"),
                    ("ENVIADO_A_CALIBRAR", "Enviado a calibrar"),
                    ("INGRESO_BODEGA", "Ingreso a bodega"),
                    ("CALIBRACION_CONFIRMADA", "Calibración confirmada"),
                ],
                max_length=30,
            ),
        ),
    ]
