"""Tabby — an incremental static renderer.

Renders a tree of templates, stylesheets and static assets into an output
directory, skipping every file whose output is already newer than its
inputs.  Shared data comes from a directory of JSON / YAML / TOML files;
extension scripts plug into the render pipeline through hooks.

Quick start::

    import tabby

    tabby.build("my-project/")              # One-shot build
    tabby.build("my-project/", watch=True)  # Build, then re-render on change

Project file (``tabby.yaml``)::

    out_dir: dist
    data: data
    cache: .cache/data.json
    extension:
      - ext/filters.py

"""

__version__ = "0.1.0-dev"
__all__ = [
    "RenderContext",
    "TabbyConfig",
    "__version__",
    "build",
    "load_config",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import tabby`` fast while providing a clean top-level API.
    """
    if name == "TabbyConfig":
        from tabby.config import TabbyConfig

        return TabbyConfig

    if name == "RenderContext":
        from tabby.render.context import RenderContext

        return RenderContext

    if name == "build":
        from tabby.app import build

        return build

    if name == "load_config":
        from tabby.config_loader import load_config

        return load_config

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
