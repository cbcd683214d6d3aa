VERSION = "0.3.0"

CONFIG_DIR_NAME = ".config/mnemos"
