from sheetdesk.helpers.logger import get_logger

# Configure the package logger once; module loggers are its children.
get_logger("sheetdesk")
