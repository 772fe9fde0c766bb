"""xpath_to_json - extract JSON from HTML with declarative XPath rules."""

# Lazy imports: modules bind their loggers on import, after the CLI configures logging
_EXPORTS = {
    "XPathExtractor": "extractor",
    "Configuration": "models",
    "Rule": "models",
    "ExtractType": "models",
    "ExtractionResult": "models",
    "ExtractionError": "models",
    "CompiledPath": "translator",
    "translate": "translator",
    "load_configuration": "loader",
    "parse_configuration": "loader",
    "parse_document": "loader",
    "read_html_file": "loader",
    "XPathToJsonError": "errors",
    "UnsupportedPath": "errors",
    "MissingAttribute": "errors",
    "UnknownIterationSource": "errors",
    "ConfigurationInvalid": "errors",
}


def __getattr__(name):
    if name in _EXPORTS:
        from importlib import import_module

        return getattr(import_module(f".{_EXPORTS[name]}", __name__), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


__version__ = "0.1.0"
__all__ = list(_EXPORTS)
