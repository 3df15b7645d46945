#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Configuration handler for the Code Preserve Translator.
Loads, saves and exposes the INI settings for the backend, translation, QA,
cache, context store and classifier.
"""

import os
import configparser
import logging

logger = logging.getLogger("code_preserve_translator.config")

TONES = ("casual", "formal", "technical")
DEFAULT_TONE = "casual"


def resolve_tone(tone=None, default=DEFAULT_TONE):
    """Normalize a tone name, using the default when none is given.

    Raises:
        ValueError: If the tone is not one of casual, formal or technical
    """
    value = (tone or default).strip().lower()
    if value not in TONES:
        raise ValueError(f"Unknown tone '{tone}', expected one of: {', '.join(TONES)}")
    return value


class Config:
    """Configuration handler for the code preserve translator."""

    DEFAULT_CONFIG = {
        'backend': {
            'api_key': '',
            'model': 'gpt-4o',
            'api_endpoint': 'https://api.openai.com/v1/responses',
            'timeout': '60',
            'max_retries': '0'
        },
        'translation': {
            'tone': DEFAULT_TONE,
            'target_language': 'Japanese',
            'max_chunk_size': '4000',
            'request_interval': '1.0',  # seconds between backend calls
            'temperature': '0.3',
            'show_progress': 'False'
        },
        'qa': {
            'temperature': '0.7'
        },
        'cache': {
            'short_ttl_minutes': '5',
            'long_ttl_days': '7',
            'sweep_interval_minutes': '60'
        },
        'context': {
            'store_path': '.code_preserve_translator/store.json',
            'max_recent_documents': '10'
        },
        'classifier': {
            'treat_uncertain_as_code': 'False',
            'min_code_length': '50'
        }
    }

    def __init__(self, config_file="config.ini"):
        """Initialize configuration from file or create default.

        Args:
            config_file: Path to the INI file; None keeps the defaults in memory only
        """
        self.config_file = config_file
        self.config = configparser.ConfigParser()

        if config_file is None:
            self._fill_defaults()
        elif os.path.exists(config_file):
            logger.info(f"Loading configuration from {config_file}")
            self.config.read(config_file, encoding='utf-8')
            self._fill_defaults(warn=True)
        else:
            logger.info(f"Creating default configuration in {config_file}")
            self._fill_defaults()
            self.save()

        if not self.config.get('backend', 'api_key'):
            env_key = os.environ.get('OPENAI_API_KEY', '')
            if env_key:
                logger.info("Using API key from OPENAI_API_KEY environment variable")
                self.config.set('backend', 'api_key', env_key)

    def _fill_defaults(self, warn=False):
        """Add every section and option missing from the loaded configuration.

        Args:
            warn: Log a warning for each gap (used when the file came from the user)
        """
        for section, options in self.DEFAULT_CONFIG.items():
            existed = self.config.has_section(section)
            if not existed:
                if warn:
                    logger.warning(f"Missing section '{section}' in config, adding defaults")
                self.config.add_section(section)

            missing = [option for option in options if not self.config.has_option(section, option)]
            if warn and existed and missing:
                logger.warning(f"Missing options in section '{section}', adding defaults: "
                               f"{', '.join(missing)}")
            for option in missing:
                self.config.set(section, option, options[option])

    def _lookup(self, section, option, fallback, read, convert):
        """Read an option, falling back to the caller's fallback, then the built-in default.

        Args:
            read: ConfigParser method reading the stored value
            convert: Converts the built-in default string to the option's type
        """
        try:
            return read(section, option)
        except (configparser.NoSectionError, configparser.NoOptionError, ValueError) as e:
            if fallback is not None:
                return fallback
            default = self.DEFAULT_CONFIG.get(section, {}).get(option)
            if default is None:
                logger.error(f"Configuration option '{section}.{option}' not found")
                return None
            if isinstance(e, ValueError):
                logger.warning(f"Invalid value for '{section}.{option}', using default {default!r}")
            return convert(default)

    def get(self, section, option, fallback=None):
        """Get configuration value."""
        return self._lookup(section, option, fallback, self.config.get, str)

    def getboolean(self, section, option, fallback=None):
        """Get boolean configuration value."""
        return self._lookup(section, option, fallback, self.config.getboolean,
                            lambda value: self.config.BOOLEAN_STATES[value.lower()])

    def getint(self, section, option, fallback=None):
        return self._lookup(section, option, fallback, self.config.getint, int)

    def getfloat(self, section, option, fallback=None):
        return self._lookup(section, option, fallback, self.config.getfloat, float)

    def tone(self):
        """Get the configured translation tone, falling back to casual when invalid."""
        value = self.get('translation', 'tone')
        try:
            return resolve_tone(value)
        except ValueError:
            logger.warning(f"Unknown tone '{value}' in config, using '{DEFAULT_TONE}'")
            return DEFAULT_TONE

    def set(self, section, option, value):
        """Set configuration value."""
        if not self.config.has_section(section):
            self.config.add_section(section)

        self.config.set(section, option, str(value))

    def save(self):
        """Save configuration to file."""
        if self.config_file is None:
            logger.debug("In-memory configuration, nothing to save")
            return
        with open(self.config_file, 'w', encoding='utf-8') as f:
            self.config.write(f)
        logger.info(f"Configuration saved to {self.config_file}")
