from django.core.management.base import BaseCommand

from bodega.models import Espacio
from bodega.services.reconciliacion_service import reconciliar_stock, recalcular_snapshots


class Command(BaseCommand):
    help = (
        "Repara el kardex y reconstruye los snapshots de stock desde los movimientos. "
        "Se puede volver a correr sin riesgo."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--solo-recalcular",
            choices=Espacio.values,
            help="Solo recalcula los snapshots de un espacio (sin corregir signos ni limpiar).",
        )

    def handle(self, *args, **options):
        espacio = options.get("solo_recalcular")
        if espacio:
            totales = recalcular_snapshots(espacio)
            for codigo, cantidad in totales.items():
                self.stdout.write(f"  {codigo}: {cantidad} u.")
            self.stdout.write(self.style.SUCCESS(f"✅ {espacio}: {len(totales)} SKUs recalculados"))
            return

        self.stdout.write("🔄 Iniciando reconciliación de stock...")
        resultado = reconciliar_stock()

        self.stdout.write(self.style.SUCCESS("🎉 Reconciliación completada:"))
        self.stdout.write(f"   - Movimientos corregidos: {resultado.movimientos_corregidos}")
        self.stdout.write(f"   - Stocks eliminados: {resultado.stocks_eliminados}")
        self.stdout.write(f"   - SKUs recalculados: {resultado.skus_recalculados}")
