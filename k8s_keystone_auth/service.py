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

"""Webhook endpoints for the Kubernetes API server.

The API server posts ``TokenReview`` objects to authenticate a bearer token
and ``SubjectAccessReview`` objects to authorize a request, both to
``/webhook``.

"""

import routes

from k8s_keystone_auth import exception
from k8s_keystone_auth.common import logging
from k8s_keystone_auth.common import wsgi
from k8s_keystone_auth.middleware import core as middleware
from k8s_keystone_auth.policy import rules


LOG = logging.getLogger(__name__)

EXTRA_PREFIX = 'alpha.kubernetes.io/identity/'
EXTRA_ROLES = EXTRA_PREFIX + 'roles'
EXTRA_PROJECT_ID = EXTRA_PREFIX + 'project/id'
EXTRA_PROJECT_NAME = EXTRA_PREFIX + 'project/name'
EXTRA_USER_DOMAIN_NAME = EXTRA_PREFIX + 'user/domain/name'

TOKEN_REVIEW_API_VERSION = 'authentication.k8s.io/v1beta1'
ACCESS_REVIEW_API_VERSION = 'authorization.k8s.io/v1beta1'


def identity_to_user(identity):
    """Render an identity as a TokenReview ``status.user``."""
    extra = {EXTRA_ROLES: sorted(identity.roles)}
    if identity.project_id:
        extra[EXTRA_PROJECT_ID] = [identity.project_id]
    if identity.project_name:
        extra[EXTRA_PROJECT_NAME] = [identity.project_name]
    if identity.domain_name:
        extra[EXTRA_USER_DOMAIN_NAME] = [identity.domain_name]
    return {
        'username': identity.user_name,
        'uid': identity.user_id,
        'groups': [identity.project_id] if identity.project_id else [],
        'extra': extra,
    }


def _first(extra, key):
    values = extra.get(key) or []
    return values[0] if values else ''


def identity_from_review(spec):
    """Rebuild an identity from a SubjectAccessReview ``spec``."""
    extra = spec.get('extra') or {}
    return rules.Identity(user_name=spec.get('user'),
                          user_id=spec.get('uid'),
                          project_id=_first(extra, EXTRA_PROJECT_ID),
                          project_name=_first(extra, EXTRA_PROJECT_NAME),
                          domain_name=_first(extra, EXTRA_USER_DOMAIN_NAME),
                          roles=extra.get(EXTRA_ROLES) or ())


def action_from_review(spec):
    """Build an action from a SubjectAccessReview ``spec``.

    A subresource is folded into the resource name as ``pods/log``.

    """
    resource_attrs = spec.get('resourceAttributes')
    non_resource_attrs = spec.get('nonResourceAttributes')
    if not resource_attrs and not non_resource_attrs:
        raise exception.MalformedRequestError(
            reason='no resource or non-resource attributes')

    resource_attrs = resource_attrs or {}
    non_resource_attrs = non_resource_attrs or {}
    resource = resource_attrs.get('resource') or ''
    if resource and resource_attrs.get('subresource'):
        resource = '%s/%s' % (resource, resource_attrs['subresource'])
    return rules.Action(
        verb=resource_attrs.get('verb') or non_resource_attrs.get('verb'),
        api_group=resource_attrs.get('group'),
        resource=resource,
        namespace=resource_attrs.get('namespace'),
        resource_name=resource_attrs.get('name'),
        non_resource_path=non_resource_attrs.get('path'))


class WebhookController(wsgi.Application):
    def __init__(self, resolver, authorizer):
        self.resolver = resolver
        self.authorizer = authorizer
        super(WebhookController, self).__init__()

    def healthz(self, context):
        return 'ok'

    def review(self, context, kind=None, apiVersion=None, spec=None,
               **kwargs):
        spec = spec or {}
        if kind == 'TokenReview':
            status = self.authenticate(spec)
            apiVersion = apiVersion or TOKEN_REVIEW_API_VERSION
        elif kind == 'SubjectAccessReview':
            status = self.authorize(spec)
            apiVersion = apiVersion or ACCESS_REVIEW_API_VERSION
        else:
            raise exception.ValidationError(attribute='a supported kind',
                                            target='the review')
        return {'apiVersion': apiVersion, 'kind': kind, 'status': status}

    def authenticate(self, spec):
        try:
            identity = self.resolver.resolve(spec.get('token'))
        except exception.AuthenticationError as e:
            LOG.info('Authentication failed: %s', e)
            return {'authenticated': False, 'error': str(e)}
        return {'authenticated': True, 'user': identity_to_user(identity)}

    def authorize(self, spec):
        try:
            identity = identity_from_review(spec)
            action = action_from_review(spec)
        except exception.MalformedRequestError as e:
            LOG.warning('Rejecting access review: %s', e)
            return {'allowed': False, 'reason': str(e)}

        allowed, reason = self.authorizer.authorize(identity, action)
        return {'allowed': allowed, 'reason': reason}


class WebhookRouter(wsgi.Router):
    def __init__(self, conf, resolver, authorizer):
        mapper = routes.Mapper()
        controller = WebhookController(resolver, authorizer)
        mapper.connect('/webhook',
                       controller=controller,
                       action='review',
                       conditions=dict(method=['POST']))
        mapper.connect('/healthz',
                       controller=controller,
                       action='healthz',
                       conditions=dict(method=['GET']))
        super(WebhookRouter, self).__init__(conf, mapper)


def app_factory(conf, resolver, authorizer):
    """Build the webhook WSGI pipeline."""
    router = WebhookRouter(conf, resolver, authorizer)
    return middleware.JsonBodyMiddleware(router, conf)
