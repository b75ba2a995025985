# Tcoder client package - submit videos to a tcoder transcoding service and follow the job

__version__ = "0.1.0"
