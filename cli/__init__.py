"""Command-line entry points: ``serve`` plus the ``send``/``recent``/``stats`` client."""
