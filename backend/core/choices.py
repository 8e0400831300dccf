"""Enumerations shared by the pricing, quote, shipment and pickup apps."""

from django.db import models


class CargoType(models.TextChoices):
    GENERAL = 'GENERAL', 'General'
    DANGEROUS = 'DANGEROUS', 'Dangerous goods'
    PERISHABLE = 'PERISHABLE', 'Perishable'
    FRAGILE = 'FRAGILE', 'Fragile'
    BULK = 'BULK', 'Bulk'
    CONTAINER = 'CONTAINER', 'Container'
    PALLETIZED = 'PALLETIZED', 'Palletized'
    OTHER = 'OTHER', 'Other'


class TransportMode(models.TextChoices):
    ROAD = 'ROAD', 'Road'
    SEA = 'SEA', 'Sea'
    AIR = 'AIR', 'Air'
    RAIL = 'RAIL', 'Rail'


class Priority(models.TextChoices):
    STANDARD = 'STANDARD', 'Standard'
    NORMAL = 'NORMAL', 'Normal'
    EXPRESS = 'EXPRESS', 'Express'
    URGENT = 'URGENT', 'Urgent'
