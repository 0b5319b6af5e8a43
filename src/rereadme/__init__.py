"""rereadme: refresh a project's README with gitingest context and an LLM."""

__version__ = "0.1.0"
