class InvalidConfiguration(ValueError):
    """Inputs that can never produce a simulation result."""


class SimulationAborted(RuntimeError):
    """A run was cancelled before it finished; no result exists."""
