# Copyright (c) 2024, Digital Consulting Service LLC (Mongolia)
# License: GNU General Public License v3

from dian.setup.install import after_install, after_migrate, before_uninstall

__all__ = ["after_install", "after_migrate", "before_uninstall"]
