"""Command-line interface modules for accretion pipeline execution.

This package contains core execution logic, making scripts/ optional and deletable.
"""

from accretion.cli.run_sequence import run_sequence_pipeline, load_user_config_dict

__all__ = ['run_sequence_pipeline', 'load_user_config_dict']
