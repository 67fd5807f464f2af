import logging

LOGGER = logging.getLogger("cubecipher")
