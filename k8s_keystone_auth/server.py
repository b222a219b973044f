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

"""Runs the Keystone authentication and authorization webhook."""

import signal
import sys

from k8s_keystone_auth import config
from k8s_keystone_auth import exception
from k8s_keystone_auth import service
from k8s_keystone_auth.common import logging
from k8s_keystone_auth.common import wsgi
from k8s_keystone_auth.identity import core as identity
from k8s_keystone_auth.policy import core as policy
from k8s_keystone_auth.policy import sources


LOG = logging.getLogger(__name__)

CONF = config.CONF


def build_app(conf):
    """Wire the resolver, policy and webhook together.

    :returns: a tuple of (app, reloader); reloader is None when
              authorization is disabled.
    :raises: :class:`exception.Error` if the service cannot start

    """
    config.validate(conf)
    resolver = identity.KeystoneIdentityResolver(
        conf.auth_url, ca_file=conf.ca_file, timeout=conf.keystone_timeout)

    source = sources.from_config(conf)
    authorizer = policy.build(source, deny_by_default=conf.deny_by_default)
    reloader = None
    if authorizer.enabled:
        reloader = policy.PolicyReloader(authorizer.store, source,
                                         conf.policy_reload_interval)
    return service.app_factory(conf, resolver, authorizer), reloader


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    CONF(args=argv)
    config.setup_logging(CONF)

    try:
        app, reloader = build_app(CONF)
    except exception.Error as e:
        LOG.critical('Unable to start: %s', e)
        sys.stderr.write('k8s-keystone-auth: %s\n' % e)
        return 1

    if reloader is not None:
        signal.signal(signal.SIGHUP,
                      lambda signum, frame: reloader.schedule_reload())
        reloader.start()

    server = wsgi.Server(app, CONF.port)
    server.start(host=CONF.bind_host)
    server.wait()
    return 0


if __name__ == '__main__':
    sys.exit(main())
