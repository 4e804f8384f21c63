from django.db import models


class SequenceCounter(models.Model):
    """Running counter behind the human-readable record identifiers"""
    name = models.CharField(max_length=30, unique=True)
    value = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name}: {self.value}"

    class Meta:
        verbose_name = 'Sequence Counter'
        verbose_name_plural = 'Sequence Counters'
