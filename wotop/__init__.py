"""Building blocks for backend services: application metadata, a use-case
registry, console and Graylog logging, templated SMTP mail, Redis token
storage and a Centrifugo API client."""

__version__ = "0.1.0"