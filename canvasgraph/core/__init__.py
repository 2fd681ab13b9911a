"""canvasgraph core: configuration, node catalog and graph container."""
