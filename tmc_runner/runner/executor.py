"""Test executor - orchestrates a runner invocation.

Coordinates the full test flow:
1. Check the project layout (single test root)
2. Compute the project library path
3. Resolve the runner library
4. Build the combined search path and process spec
5. Run the runner process, capturing its output
"""

import logging
from typing import Iterable, Optional

from ..config import OrchestratorConfig, RunnerDefaults, load_defaults
from ..resolver.pip_resolver import DependencyResolver, runner_coordinate
from ..resolver.project_env import ProjectEnvironment
from .library_path import build_library_path
from .orchestrator import ExecutionResult, ProcessOrchestrator
from .process_spec import ProcessSpec, ProcessSpecBuilder, select_test_output_root

logger = logging.getLogger(__name__)


class TestExecutor:
    """Runs a list of test identifiers through the TMC test runner.

    Layout, classpath and resolution errors propagate before any process
    is started. Everything after that is reported through the exit code.
    """

    # Not a pytest test class.
    __test__ = False

    def __init__(
        self,
        config: OrchestratorConfig,
        defaults: RunnerDefaults,
        resolver: Optional[DependencyResolver] = None,
        project_env: Optional[ProjectEnvironment] = None,
        orchestrator: Optional[ProcessOrchestrator] = None,
    ):
        self.config = config
        self.defaults = defaults
        self.resolver = resolver or DependencyResolver()
        self.project_env = project_env or ProjectEnvironment(
            base_dir=config.base_dir,
            project_paths=config.project_paths,
            venv_path=config.venv_path,
        )
        self.orchestrator = orchestrator or ProcessOrchestrator(
            stdout_path=config.stdout_file,
            stderr_path=config.stderr_file,
        )

    def prepare(self, test_ids: Iterable[str]) -> ProcessSpec:
        """Resolve everything needed to launch the runner.

        Raises:
            UnsupportedLayoutError: If there isn't exactly one test root.
            ClasspathUnavailableError: If the project path can't be computed.
            DependencyResolutionError: If the runner can't be resolved.
        """
        test_root = select_test_output_root(self.config.test_roots)
        project_paths = self.project_env.library_path()

        coordinate = runner_coordinate(self.defaults, self.config.runner_version)
        runner_paths = self.resolver.resolve(coordinate, self.config.repository)
        logger.debug("Runner path for %s: %s", coordinate, runner_paths)

        builder = ProcessSpecBuilder(working_dir=self.config.base_dir)
        return builder.build(
            search_path=build_library_path(project_paths, runner_paths),
            test_output_root=test_root,
            result_file=self.config.results_file,
            entry_point=self.defaults.entry_point,
            test_ids=list(test_ids),
            timeout_ms=self.config.timeout_ms,
        )

    def execute(self, test_ids: Iterable[str]) -> ExecutionResult:
        """Run the given tests.

        Returns:
            ExecutionResult; exit code 0 means the runner completed, test
            outcomes are in the results file.
        """
        test_ids = list(test_ids)
        spec = self.prepare(test_ids)

        results_file = self.config.results_file
        results_file.parent.mkdir(parents=True, exist_ok=True)
        results_file.unlink(missing_ok=True)

        logger.info("Running tests using TMC test runner.")
        logger.debug(
            "%d test(s), runner timeout %d ms",
            len(test_ids), self.config.timeout_ms,
        )
        result = self.orchestrator.run(spec)

        if results_file.exists():
            logger.info("Results written to %s", results_file)
        elif result.launched:
            logger.warning("Runner exited with %d without writing %s", result.exit_code, results_file)

        return result


def create_executor(
    config: OrchestratorConfig,
    defaults: Optional[RunnerDefaults] = None,
) -> TestExecutor:
    """Build a TestExecutor from explicit configuration.

    Args:
        config: Run configuration.
        defaults: Runner defaults. Loaded from the bundled defaults.yaml
            when omitted.
    """
    return TestExecutor(config=config, defaults=defaults or load_defaults())
