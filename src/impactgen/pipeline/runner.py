"""Settings-driven generation of one agent forcing file.

Builds the output series, runs every configured hazard module over all
combinations of its template variables and writes the merged result.
"""

import itertools
import json
import logging
from pathlib import Path
from typing import Iterator, Mapping

from impactgen.contracts import FormatError
from impactgen.forcing import ForcingCombination, ReferenceTime
from impactgen.impacts import IMPACT_TYPES, HazardImpact, fill_template
from impactgen.io import ForcingOutput, XarraySource
from impactgen.schemas import InternalConfig
from impactgen.schemas.internal import RangeConfig
from impactgen.schemas.param import NameListConfig

__all__ = ['ImpactRunner', 'expand_variables', 'load_names']

logger = logging.getLogger(__name__)


def load_names(source) -> list[str]:
    """Region or sector names, given inline or as a netCDF string variable."""
    if isinstance(source, NameListConfig):
        with XarraySource.open(source.file) as nc:
            return nc.get_strings(source.variable)
    return list(source)


def expand_variables(variables: Mapping[str, object]) -> Iterator[dict[str, object]]:
    """Yield every combination of the template variables of an impact.

    A variable is either a list of values or an inclusive ``from``/``to``
    integer range. Without variables a single empty combination is
    yielded.

    Examples
    --------
    >>> list(expand_variables({"model": ["a", "b"]}))
    [{'model': 'a'}, {'model': 'b'}]
    """
    keys = list(variables)
    values = []
    for key in keys:
        spec = variables[key]
        if isinstance(spec, RangeConfig):
            if spec.from_ > spec.to:
                raise FormatError(f"Variable '{key}': 'from' value should be less than 'to' value")
            values.append(range(spec.from_, spec.to + 1))
        else:
            values.append(list(spec))
    for combination in itertools.product(*values):
        yield dict(zip(keys, combination))


class ImpactRunner:
    """Runs the configured hazard modules into one forcing file.

    Parameters
    ----------
    config : InternalConfig
        Resolved run configuration.

    Example usage::

        from impactgen.schemas import resolve_config, ParamConfig

        config = resolve_config(ParamConfig(), user_cfg)
        ImpactRunner(config).run()
    """

    def __init__(self, config: InternalConfig):
        self.config = config
        self.reference_time = ReferenceTime.parse(config.reference)
        self.combination = ForcingCombination.parse(config.combination)
        self.output = None

    def _setup_logging(self):
        """Configure the root logger with file and console handlers."""
        log_level = getattr(logging, self.config.logging.level.upper(), logging.INFO)

        log_path = Path(self.config.logging.file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        formatter = logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        # Clear existing handlers and add new ones
        root = logging.getLogger()
        root.setLevel(log_level)
        for handler in root.handlers[:]:
            root.removeHandler(handler)

        fh = logging.FileHandler(log_path)
        fh.setLevel(log_level)
        fh.setFormatter(formatter)
        root.addHandler(fh)

        ch = logging.StreamHandler()
        ch.setLevel(log_level)
        ch.setFormatter(formatter)
        root.addHandler(ch)

    def output_filename(self) -> str:
        """Output path with ``[[key]]`` filled from the run settings."""
        settings = {
            "reference": self.config.reference,
            "combination": self.config.combination,
        }
        return fill_template(self.config.output.file, settings, default="UNKNOWN")

    def open_output(self) -> ForcingOutput:
        settings = json.dumps(self.config.model_dump(by_alias=True))
        output = ForcingOutput(self.output_filename(), self.reference_time,
                               self.combination, settings=settings)
        output.add_regions(load_names(self.config.regions))
        output.add_sectors(load_names(self.config.sectors))
        output.open()
        logger.info("Output: %s (%d sectors, %d regions)", output.filename,
                    len(output.sectors), len(output.regions))
        return output

    def build_impact(self, impact_config) -> HazardImpact:
        impact_type = IMPACT_TYPES[impact_config.type]
        return impact_type(impact_config, self.output.prepare_forcing())

    def run_impact(self, impact_config) -> None:
        """Join one hazard module for every combination of its variables."""
        impact = self.build_impact(impact_config)
        logger.info("Impact %s: %r", impact.name, impact)
        for template_vars in expand_variables(impact_config.variables):
            if template_vars:
                logger.info("%s: %s", impact.name, template_vars)
            series = impact.join(self.reference_time, template_vars)
            self.output.include_forcing(series)

    def run(self, setup_logging: bool = True) -> Path:
        """Generate and write the forcing file.

        Returns
        -------
        Path
            The written output file.
        """
        if setup_logging:
            self._setup_logging()

        logger.info("=" * 60)
        logger.info("Starting agent forcing generation")
        logger.info("=" * 60)

        self.output = self.open_output()
        for impact_config in self.config.impacts:
            self.run_impact(impact_config)
        return self.output.write()
