"""gotmpl command line interface."""
