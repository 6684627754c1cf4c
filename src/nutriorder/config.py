"""
Configuration handling for the food ordering back end.
"""
import os
import logging
import configparser
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()
# Load environment variables
DB_TYPE = os.getenv("NUTRIORDER_DB_TYPE", "sqlite")
DB_NAME = os.getenv("NUTRIORDER_DB_NAME", "nutriorder.db")
DB_HOST = os.getenv("NUTRIORDER_DB_HOST", "")
DB_PORT = os.getenv("NUTRIORDER_DB_PORT", "")
DB_USER = os.getenv("NUTRIORDER_DB_USER", "")
DB_PASSWORD = os.getenv("NUTRIORDER_DB_PASSWORD", "")


class Config:
    """Configuration manager for the food ordering back end."""

    def __init__(self, config_file='config.ini'):
        """
        Initialize configuration from config file.
        """
        self.config = configparser.ConfigParser(interpolation=None)

        # Set default values
        self._set_defaults()

        # Try to read from config file
        config_path = Path(config_file)
        if config_path.exists():
            self.config.read(config_path)
            self._setup_logging()
        else:
            print(f"Warning: Config file {config_file} not found. Using defaults.")

    def _set_defaults(self):
        """Set default configuration values."""
        self.config['DATABASE'] = {
            'type': DB_TYPE,
            'name': DB_NAME,
            'host': DB_HOST,
            'port': DB_PORT,
            'user': DB_USER,
            'password': DB_PASSWORD
        }

        self.config['LOGGING'] = {
            'level': 'INFO',
            'file': 'logs/nutriorder.log'
        }

        self.config['AUTH'] = {
            'session_ttl_seconds': '3600'
        }

        self.config['ANALYTICS'] = {
            'health_window_days': '30',
            'recommendation_threshold': '60'
        }

        self.config['PATHS'] = {
            'output_dir': 'data/output'
        }

    def _setup_logging(self):
        """Configure logging based on settings."""
        log_config = self.config['LOGGING']
        log_level = getattr(logging, log_config.get('level', 'INFO').upper(), logging.INFO)
        log_file = log_config.get('file', 'logs/nutriorder.log')

        # Create directory for log file if it doesn't exist
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        logging.basicConfig(
            level=log_level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[
                logging.FileHandler(log_file),
                logging.StreamHandler()
            ]
        )

    def get_database_config(self):
        """
        Get database configuration.
        """
        return {
            'type': self.config['DATABASE'].get('type'),
            'name': self.config['DATABASE'].get('name'),
            'host': self.config['DATABASE'].get('host'),
            'port': self.config['DATABASE'].get('port'),
            'user': self.config['DATABASE'].get('user'),
            'password': self.config['DATABASE'].get('password')
        }

    def get_session_ttl(self):
        """Seconds an auth session stays fresh."""
        return self.config['AUTH'].getint('session_ttl_seconds', 3600)

    def get_health_window_days(self):
        return self.config['ANALYTICS'].getint('health_window_days', 30)

    def get_recommendation_threshold(self):
        return self.config['ANALYTICS'].getfloat('recommendation_threshold', 60.0)

    def get_output_path(self, filename=None):
        """
        Get output directory or file path.

        """
        output_dir = self.config['PATHS'].get('output_dir', 'data/output')

        # Create directory if it doesn't exist
        if not os.path.exists(output_dir):
            os.makedirs(output_dir)

        if filename:
            return os.path.join(output_dir, filename)
        return output_dir
