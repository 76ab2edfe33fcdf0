from django.db.models.signals import post_save
from django.dispatch import receiver
from django.contrib.auth import get_user_model

from .models import UserProfile

User = get_user_model()


@receiver(post_save, sender=User)
def crear_profile_usuario(sender, instance, created, **kwargs):
    """
    Cada vez que se crea un Usuario, se le crea un perfil (UserProfile)
    automáticamente con rol COLABORADOR por defecto.
    """
    if kwargs.get("raw") or not created:
        return

    UserProfile.objects.get_or_create(
        user=instance,
        defaults={"rol": UserProfile.Rol.COLABORADOR},
    )
