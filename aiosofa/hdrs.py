# -*- coding: utf-8 -*-
#
# Copyright (C) 2015 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

from aiohttp.hdrs import (
    ACCEPT,
    AUTHORIZATION,
    CONTENT_LENGTH,
    CONTENT_TYPE,
)
from multidict import istr

#: Quoted document revision or attachment digest
ETAG = istr('ETag')
#: Base64 encoded MD5 digest of an attachment
CONTENT_MD5 = istr('Content-MD5')
#: Target document ID of ``COPY`` request
DESTINATION = istr('Destination')
#: Conditional ``GET`` by revision
IF_NONE_MATCH = istr('If-None-Match')

__all__ = (
    'ACCEPT',
    'AUTHORIZATION',
    'CONTENT_LENGTH',
    'CONTENT_MD5',
    'CONTENT_TYPE',
    'DESTINATION',
    'ETAG',
    'IF_NONE_MATCH',
)
