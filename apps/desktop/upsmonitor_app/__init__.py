"""Console presentation of the monitor panel."""
