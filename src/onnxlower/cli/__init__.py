"""Command-line interface for onnxlower."""
