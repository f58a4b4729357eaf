"""SYSMGMT test suite.

Folder taxonomy
- unit/         : Isolated, fast checks of a single module/class/function.
- contract/     : Behaviour every implementation of a port must share.
- integration/  : Adapters against real infrastructure (SQLite + Alembic, httpx transport).
- functional/   : User-visible flows through the service and the CLI.
- e2e/          : The top-level CLI command (logging, profiles) via CliRunner.
- fixtures/     : pytest plugins with shared fixtures (no tests here).
- helpers/      : Shared utilities (no tests here).

General guidance
- Unit tests of explicitly wired components subclass `sysmgmt.testing.UnitTestBase`.
- Prefer the in-memory adapters over mocks when a test is about outcomes, and
  mocks when it is about interactions.
- Property-based tests live with the layer they exercise and use @pytest.mark.property.
"""
