# vim: tabstop=4 shiftwidth=4 softtabstop=4

# Copyright 2017 OpenStack Foundation
#
# Licensed under the Apache License, Version 2.0 (the "License"); you may
# not use this file except in compliance with the License. You may obtain
# a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS, WITHOUT
# WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied. See the
# License for the specific language governing permissions and limitations
# under the License.

import os
import tempfile
import unittest

from k8s_keystone_auth import config


class TestCase(unittest.TestCase):
    """Base test case with a private, fully registered configuration."""

    def setUp(self):
        super(TestCase, self).setUp()
        self.conf = config.Config()
        config.register_opts(self.conf)
        self.conf(args=[], config_files=[])
        self.addCleanup(self.conf.reset)

    def opt(self, **kw):
        for k, v in kw.items():
            self.conf.set_override(k, v)

    def write_file(self, contents, name='policy.json'):
        """Write `contents` to a temporary file and return its path."""
        tmpdir = tempfile.mkdtemp()
        path = os.path.join(tmpdir, name)
        with open(path, 'w') as f:
            f.write(contents)

        def cleanup():
            os.unlink(path)
            os.rmdir(tmpdir)
        self.addCleanup(cleanup)
        return path
