from django.apps import AppConfig


class LabwizardConfig(AppConfig):
    name = "labwizard"
    verbose_name = "Lab wizard form engine"
