"""Sample app that exercises Cloud Logging, Monitoring and Error Reporting after a runtime push."""

__version__ = "0.1.0"
