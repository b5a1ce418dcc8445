# -*- coding: utf-8 -*-
# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

"""
Configuration for DIAN

Validates DIAN Settings and turns them into a plain GatewayConfig value that
the transformer and client read. Nothing here is cached: each document gets
a fresh snapshot of the settings.
"""

from dataclasses import dataclass
from decimal import Decimal

import frappe
from frappe import _
from frappe.utils import cint, flt

from dian.exceptions import ConfigurationError

SETTINGS_DOCTYPE = "DIAN Settings"

DEFAULT_BASE_URL = "https://facturacionelectronica.mobilsaas.com"
DEFAULT_TEST_SET_ID = "1"
DEFAULT_TIMEOUT = 30

ENVIRONMENT_PRODUCTION = "Production"
ENVIRONMENT_TEST = "Test"


@dataclass
class ConfigIssue:
    """Configuration issue"""
    field: str
    message: str
    severity: str = "error"


@dataclass
class ConfigValidationResult:
    """Result of configuration validation"""
    is_valid: bool
    issues: list[ConfigIssue]

    def get_errors(self) -> list[ConfigIssue]:
        return [i for i in self.issues if i.severity == "error"]

    def get_warnings(self) -> list[ConfigIssue]:
        return [i for i in self.issues if i.severity == "warning"]


@dataclass(frozen=True)
class GatewayConfig:
    """Snapshot of the settings needed to build and send one document."""
    base_url: str = DEFAULT_BASE_URL
    test_set_id: str = DEFAULT_TEST_SET_ID
    environment: str = ENVIRONMENT_TEST
    sync: bool = True
    timeout: int = DEFAULT_TIMEOUT
    debug_mode: bool = False
    tax_correction_tolerance: Decimal = Decimal("1")
    resolution_id_override: int = 0

    @property
    def is_production(self) -> bool:
        return self.environment == ENVIRONMENT_PRODUCTION

    @property
    def type_document_id(self) -> int:
        # 1 = production, 2 = test
        return 1 if self.is_production else 2


class ConfigValidator:
    """Validates DIAN configuration"""

    def validate(self) -> ConfigValidationResult:
        """Validate all configuration"""
        issues: list[ConfigIssue] = []

        if not self._settings_exist():
            issues.append(ConfigIssue(
                field="settings",
                message=_("DIAN Settings not found. Please configure the app."),
                severity="error"
            ))
            return ConfigValidationResult(is_valid=False, issues=issues)

        settings = frappe.get_single(SETTINGS_DOCTYPE)
        return self.validate_settings(settings)

    def validate_settings(self, settings) -> ConfigValidationResult:
        issues: list[ConfigIssue] = []
        issues.extend(self._validate_api_config(settings))
        issues.extend(self._validate_numbering(settings))
        issues.extend(self._validate_company_config(settings))

        is_valid = len([i for i in issues if i.severity == "error"]) == 0
        return ConfigValidationResult(is_valid=is_valid, issues=issues)

    def _settings_exist(self) -> bool:
        return bool(frappe.db.exists("DocType", SETTINGS_DOCTYPE))

    def _validate_api_config(self, settings) -> list[ConfigIssue]:
        issues = []

        if not settings.enabled:
            issues.append(ConfigIssue(
                field="enabled",
                message=_("DIAN integration is disabled"),
                severity="info"
            ))
            return issues

        if not settings.api_base_url:
            issues.append(ConfigIssue(
                field="api_base_url",
                message=_("Gateway base URL is required"),
                severity="error"
            ))
        elif not settings.api_base_url.startswith("https://"):
            issues.append(ConfigIssue(
                field="api_base_url",
                message=_("Gateway URL should use HTTPS"),
                severity="warning"
            ))

        if not settings.test_set_id:
            issues.append(ConfigIssue(
                field="test_set_id",
                message=_("Test Set ID is required to build the submission path"),
                severity="error"
            ))

        return issues

    def _validate_numbering(self, settings) -> list[ConfigIssue]:
        issues = []

        if not settings.enabled:
            return issues

        if cint(settings.get("resolution_id_override")):
            issues.append(ConfigIssue(
                field="resolution_id_override",
                message=_("Resolution ID override is set. The active DIAN Resolution's id will be ignored."),
                severity="warning"
            ))

        if not frappe.db.exists("DIAN Resolution", {"active": 1}):
            issues.append(ConfigIssue(
                field="resolution",
                message=_("No active DIAN Resolution. Documents cannot be numbered."),
                severity="error"
            ))

        tolerance = flt(settings.get("tax_correction_tolerance"))
        if tolerance < 0:
            issues.append(ConfigIssue(
                field="tax_correction_tolerance",
                message=_("Tax correction tolerance cannot be negative"),
                severity="error"
            ))

        return issues

    def _validate_company_config(self, settings) -> list[ConfigIssue]:
        issues = []

        if not settings.enabled:
            return issues

        if not settings.get("company"):
            issues.append(ConfigIssue(
                field="company",
                message=_("No default company set. The invoice's company will be used."),
                severity="warning"
            ))

        return issues


def validate_config() -> ConfigValidationResult:
    return ConfigValidator().validate()


def get_settings():
    """DIAN Settings singleton. Raises ConfigurationError when not installed."""
    if not frappe.db.exists("DocType", SETTINGS_DOCTYPE):
        raise ConfigurationError(_("DIAN Settings not found. Please configure the app."))
    return frappe.get_single(SETTINGS_DOCTYPE)


def is_enabled() -> bool:
    if not frappe.db.exists("DocType", SETTINGS_DOCTYPE):
        return False
    return bool(cint(frappe.db.get_single_value(SETTINGS_DOCTYPE, "enabled")))


def get_gateway_config(settings=None) -> GatewayConfig:
    """Build a GatewayConfig from DIAN Settings."""
    if settings is None:
        settings = get_settings()

    tolerance = settings.get("tax_correction_tolerance")
    return GatewayConfig(
        base_url=(settings.get("api_base_url") or DEFAULT_BASE_URL).rstrip("/"),
        test_set_id=str(settings.get("test_set_id") or DEFAULT_TEST_SET_ID),
        environment=settings.get("environment") or ENVIRONMENT_TEST,
        sync=bool(cint(settings.get("sync"))) if settings.get("sync") is not None else True,
        timeout=cint(settings.get("timeout")) or DEFAULT_TIMEOUT,
        debug_mode=bool(cint(settings.get("debug_mode"))),
        tax_correction_tolerance=Decimal("1") if tolerance in (None, "") else Decimal(str(flt(tolerance))),
        resolution_id_override=cint(settings.get("resolution_id_override")),
    )


def get_config_status() -> dict:
    result = validate_config()
    return {
        "valid": result.is_valid,
        "errors": [{"field": i.field, "message": i.message} for i in result.get_errors()],
        "warnings": [{"field": i.field, "message": i.message} for i in result.get_warnings()]
    }


@frappe.whitelist()
def check_configuration():
    """Check DIAN configuration status"""
    frappe.only_for(["System Manager", "Administrator"])
    return get_config_status()
