"""Command-line interface modules for impactgen runs.

This package contains core execution logic, making scripts/ optional and deletable.
"""

from impactgen.cli.run_impactgen import load_user_config_dict, run_impactgen

__all__ = ['load_user_config_dict', 'run_impactgen']
