"""Site configuration publisher.

Turns model-generated site configurations into commits on the website template
repository and tracks the resulting deployments.
"""

__version__ = "0.1.0"
