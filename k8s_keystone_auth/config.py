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
import sys

from oslo_config import cfg

from k8s_keystone_auth import exception
from k8s_keystone_auth.common import logging


DEFAULT_LOG_FORMAT = ('%(asctime)s %(levelname)8s [%(name)s] %(message)s')
DEFAULT_LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

keystone_opts = [
    cfg.StrOpt('auth_url',
               help='Keystone endpoint used to validate tokens'),
    cfg.StrOpt('ca_file',
               help='CA bundle used to verify the Keystone endpoint'),
    cfg.IntOpt('keystone_timeout', default=5,
               help='Seconds to wait for Keystone to answer'),
    ]

policy_opts = [
    cfg.StrOpt('policy_file',
               help='JSON file holding the authorization policy'),
    cfg.StrOpt('config_map',
               help='Config map in kube-system holding the policy under '
                    'the "policies" key'),
    cfg.StrOpt('kube_config',
               help='kubeconfig used to read the policy config map'),
    cfg.IntOpt('policy_reload_interval', default=0,
               help='Seconds between policy reloads, 0 disables polling'),
    cfg.IntOpt('policy_fetch_timeout', default=5,
               help='Seconds to wait for the policy config map'),
    cfg.BoolOpt('deny_by_default', default=False,
                help='Deny requests no policy rule matches'),
    ]

server_opts = [
    cfg.StrOpt('bind_host', default='0.0.0.0'),
    cfg.PortOpt('port', default=8443),
    ]

logging_opts = [
    cfg.BoolOpt('debug', short='d', default=False,
                help='Print debugging output'),
    cfg.BoolOpt('verbose', short='v', default=False,
                help='Print more verbose output'),
    cfg.StrOpt('log_config',
               help='Logging configuration file, overrides the other '
                    'logging options'),
    cfg.StrOpt('log_format', default=DEFAULT_LOG_FORMAT),
    cfg.StrOpt('log_date_format', default=DEFAULT_LOG_DATE_FORMAT),
    cfg.StrOpt('log_file'),
    cfg.StrOpt('log_dir'),
    cfg.BoolOpt('use_syslog', default=False),
    cfg.StrOpt('syslog_log_facility', default='LOG_USER'),
    ]


def register_opts(conf):
    for opts in (keystone_opts, policy_opts, server_opts, logging_opts):
        conf.register_cli_opts(opts)


class Config(cfg.ConfigOpts):
    def __call__(self, args=None, config_files=None, **kw):
        kw.setdefault('project', 'k8s-keystone-auth')
        return super(Config, self).__call__(
            args=args, default_config_files=config_files, **kw)


def validate(conf):
    """Refuse configurations with ambiguous policy semantics.

    :raises: :class:`exception.ConfigurationError`

    """
    if not conf.auth_url:
        raise exception.ConfigurationError(reason='auth_url is empty')
    if conf.policy_file and conf.config_map:
        raise exception.ConfigurationError(
            reason='policy_file and config_map are mutually exclusive')
    if conf.config_map and not conf.kube_config:
        raise exception.ConfigurationError(
            reason='config_map requires kube_config')


def setup_logging(conf):
    """
    Sets up the logging options for a log with supplied name

    :param conf: a cfg.ConfOpts object
    """

    if conf.log_config:
        # Use a logging configuration file for all settings...
        if os.path.exists(conf.log_config):
            logging.config.fileConfig(conf.log_config)
            return
        else:
            raise RuntimeError('Unable to locate specified logging '
                               'config file: %s' % conf.log_config)

    root_logger = logging.root
    if conf.debug:
        root_logger.setLevel(logging.DEBUG)
    elif conf.verbose:
        root_logger.setLevel(logging.INFO)
    else:
        root_logger.setLevel(logging.WARNING)

    formatter = logging.Formatter(conf.log_format, conf.log_date_format)

    if conf.use_syslog:
        try:
            facility = getattr(logging.SysLogHandler,
                               conf.syslog_log_facility)
        except AttributeError:
            raise ValueError('Invalid syslog facility')

        handler = logging.SysLogHandler(address='/dev/log',
                                        facility=facility)
    elif conf.log_file:
        logfile = conf.log_file
        if conf.log_dir:
            logfile = os.path.join(conf.log_dir, logfile)
        handler = logging.WatchedFileHandler(logfile)
    else:
        handler = logging.StreamHandler(sys.stdout)

    handler.setFormatter(formatter)
    root_logger.addHandler(handler)


CONF = Config()
register_opts(CONF)
