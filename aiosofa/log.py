# -*- coding: utf-8 -*-
#
# Copyright (C) 2015 Alexander Shorin
# All rights reserved.
#
# This software is licensed as described in the file LICENSE, which
# you should have received as part of this distribution.
#

import logging


def activate_debug_logging():
    client_log = logging.getLogger('aiosofa')
    client_log.setLevel(logging.DEBUG)
    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG)
    ch.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s'
                                      ' - %(message)s'))
    client_log.addHandler(ch)
    client_log.propagate = False

    feeds_log = logging.getLogger('aiosofa.feeds')
    feeds_log.setLevel(logging.DEBUG)
    ch = logging.StreamHandler()
    ch.setLevel(logging.DEBUG)
    ch.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s'
                                      ' - %(database)s - %(message)s'))
    feeds_log.addHandler(ch)
    feeds_log.propagate = False
