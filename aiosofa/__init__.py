# -*- coding: utf-8 -*-
#
# Copyright (C) 2014 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

# flake8: noqa

from .authn import BasicAuthProvider, NoAuthProvider
from .database import Database
from .designdoc import DesignDocument
from .document import Document
from .errors import *
from .params import FeedMode, Stale, Style
from .records import Doc, DocumentType
from .server import Server
from .version import __version__, __version_info__
