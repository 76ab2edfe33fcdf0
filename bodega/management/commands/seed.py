from django.core.management.base import BaseCommand
from django.db import transaction

from bodega.catalogo import SKU_CATALOGO
from bodega.models import Sku


class Command(BaseCommand):
    help = "Carga el catálogo de SKUs (huevo blanco/color, sucio, sin calibrar y desecho)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--actualizar",
            action="store_true",
            help="Sobrescribe nombre y factores de los SKUs que ya existen.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        creados = 0
        actualizados = 0

        for orden, (codigo, nombre, tipo, calibre, upc, upb) in enumerate(SKU_CATALOGO, start=1):
            datos = {
                "nombre": nombre,
                "tipo": tipo,
                "calibre": calibre,
                "unidades_por_caja": upc,
                "unidades_por_bandeja": upb,
                "orden": orden,
            }
            if options["actualizar"]:
                _, created = Sku.objects.update_or_create(codigo=codigo, defaults=datos)
            else:
                _, created = Sku.objects.get_or_create(codigo=codigo, defaults=datos)

            if created:
                creados += 1
            elif options["actualizar"]:
                actualizados += 1

        self.stdout.write(self.style.SUCCESS(
            f"✅ Seed listo. SKUs creados: {creados}, actualizados: {actualizados}, total catálogo: {len(SKU_CATALOGO)}"
        ))
