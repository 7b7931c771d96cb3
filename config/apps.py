"""Custom Django admin app configuration."""

from django.contrib.admin.apps import AdminConfig


class BridgeAdminConfig(AdminConfig):
    default_site = "config.admin.BridgeAdminSite"
