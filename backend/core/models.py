from django.core.validators import MinLengthValidator, RegexValidator
from django.db import models

iso2_validator = RegexValidator(
    regex=r'^[A-Z]{2}$',
    message="Country code must be two upper-case letters (ISO 3166-1 alpha-2).",
)


class Country(models.Model):
    code = models.CharField(max_length=2, unique=True, validators=[iso2_validator])
    name = models.CharField(max_length=100, validators=[MinLengthValidator(2)])
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'countries'
        ordering = ['name']
        verbose_name_plural = 'countries'

    def save(self, *args, **kwargs):
        if self.code:
            self.code = self.code.strip().upper()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.code})"
