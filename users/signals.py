from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from users.models import Location
from users.scoping import invalidate_location_ids


@receiver(post_save, sender=Location, dispatch_uid="scope_locations_on_save")
def scope_locations_on_save(sender, instance, **kwargs):
    invalidate_location_ids(instance.business_id)


@receiver(post_delete, sender=Location, dispatch_uid="scope_locations_on_delete")
def scope_locations_on_delete(sender, instance, **kwargs):
    invalidate_location_ids(instance.business_id)
