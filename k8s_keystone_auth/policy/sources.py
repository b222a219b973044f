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

"""Where policy text comes from.

A source has a single ``fetch()`` method returning the raw policy text or
raising :class:`exception.PolicySourceError`.

"""

from kubernetes import client as k8s_client
from kubernetes import config as k8s_config
from kubernetes.client.exceptions import ApiException
from kubernetes.config.config_exception import ConfigException
import urllib3

from k8s_keystone_auth import exception
from k8s_keystone_auth.common import logging


LOG = logging.getLogger(__name__)

POLICY_NAMESPACE = 'kube-system'
POLICY_KEY = 'policies'
DEFAULT_TIMEOUT = 5


class FilePolicySource(object):
    """Reads policy from a local file."""

    def __init__(self, path):
        self.path = path

    def fetch(self):
        try:
            with open(self.path) as f:
                return f.read()
        except (IOError, OSError) as e:
            raise exception.PolicySourceError(source=self, reason=e)

    def __str__(self):
        return 'file %s' % self.path


class ConfigMapPolicySource(object):
    """Reads policy from a config map in the cluster.

    The Kubernetes client is built on first use from `kube_config`. Every
    API call is bounded by `timeout` seconds.

    """

    def __init__(self, name, kube_config, namespace=POLICY_NAMESPACE,
                 key=POLICY_KEY, timeout=DEFAULT_TIMEOUT, api=None):
        self.name = name
        self.kube_config = kube_config
        self.namespace = namespace
        self.key = key
        self.timeout = timeout
        self._api = api

    def _get_api(self):
        if self._api is None:
            LOG.info('Creating kubernetes API client.')
            try:
                api_client = k8s_config.new_client_from_config(
                    config_file=self.kube_config)
            except (ConfigException, IOError, OSError) as e:
                raise exception.PolicySourceError(source=self, reason=e)
            try:
                version = k8s_client.VersionApi(api_client).get_code(
                    _request_timeout=self.timeout)
                LOG.info('Kubernetes API client created, server version '
                         'v%s.%s', version.major, version.minor)
            except (ApiException, urllib3.exceptions.HTTPError, OSError) as e:
                raise exception.PolicySourceError(source=self, reason=e)
            self._api = k8s_client.CoreV1Api(api_client)
        return self._api

    def fetch(self):
        api = self._get_api()
        try:
            config_map = api.read_namespaced_config_map(
                self.name, self.namespace, _request_timeout=self.timeout)
        except (ApiException, urllib3.exceptions.HTTPError, OSError) as e:
            raise exception.PolicySourceError(source=self, reason=e)

        data = config_map.data or {}
        if self.key not in data:
            raise exception.PolicySourceError(
                source=self, reason='key %s not found' % self.key)
        return data[self.key]

    def __str__(self):
        return 'configmap %s/%s' % (self.namespace, self.name)


def from_config(conf):
    """Return the policy source named in `conf`, or None if there is none."""
    if conf.policy_file:
        return FilePolicySource(conf.policy_file)
    if conf.config_map:
        return ConfigMapPolicySource(conf.config_map, conf.kube_config,
                                     timeout=conf.policy_fetch_timeout)
    return None
