"""
Tests for shared infrastructure: error envelope, audit logging, pagination
and report cache invalidation
"""
from django.core.cache import cache
from django.db import transaction
from django.test import TestCase, RequestFactory, override_settings
from rest_framework import status
from rest_framework.exceptions import ValidationError
from decimal import Decimal

from stockflow.core.cache_utils import (
    cached_report, get_reports_generation, invalidate_reports_cache, make_cache_key
)
from stockflow.core.exceptions import (
    AppError, Conflict, InsufficientStock, InternalError, NotFound, ValidationFailed, app_exception_handler
)
from stockflow.core.models import AuditLog
from stockflow.core.test_utils import JSONAPIClient, TestDataFactory
from stockflow.core.utils import create_audit_log, get_client_ip


class AppErrorTests(TestCase):
    """Test the error taxonomy"""

    def test_status_codes_and_codes(self):
        cases = [
            (ValidationFailed(), 400, 'VALIDATION_ERROR'),
            (NotFound(), 404, 'NOT_FOUND'),
            (Conflict(), 409, 'CONFLICT'),
            (InsufficientStock(), 400, 'INSUFFICIENT_STOCK'),
            (InternalError(), 500, 'INTERNAL_ERROR'),
        ]
        for exc, status_code, code in cases:
            with self.subTest(code=code):
                self.assertEqual(exc.status_code, status_code)
                self.assertEqual(exc.code, code)

    def test_to_dict_envelope(self):
        exc = InsufficientStock('Insufficient stock. Available: 2, Requested: 5')
        self.assertEqual(exc.to_dict(), {
            'error': {
                'message': 'Insufficient stock. Available: 2, Requested: 5',
                'code': 'INSUFFICIENT_STOCK',
                'statusCode': 400,
            }
        })

    def test_details_included_when_present(self):
        exc = ValidationFailed('Invalid transaction data', details={'quantity': ['required']})
        self.assertEqual(exc.to_dict()['error']['details'], {'quantity': ['required']})

    def test_default_message(self):
        self.assertEqual(NotFound().message, 'Resource not found')
        self.assertIsInstance(Conflict(), AppError)


class ExceptionHandlerTests(TestCase):
    """Test app_exception_handler rendering"""

    def test_app_error_rendered(self):
        response = app_exception_handler(Conflict('Transaction with ID T1 already exists'), {})
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['error']['code'], 'CONFLICT')
        self.assertEqual(response.data['error']['statusCode'], 409)

    def test_drf_validation_error_wrapped(self):
        response = app_exception_handler(ValidationError({'name': ['This field is required.']}), {})
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error']['message'], 'Invalid input')
        self.assertEqual(response.data['error']['code'], 'VALIDATION_ERROR')
        self.assertIn('name', response.data['error']['details'])

    def test_unknown_exception_becomes_500(self):
        with self.assertLogs('stockflow.core.exceptions', level='ERROR'):
            response = app_exception_handler(RuntimeError('boom'), {})
        self.assertEqual(response.status_code, status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.assertEqual(response.data['error']['code'], 'INTERNAL_ERROR')

    def test_404_from_view_uses_envelope(self):
        client = JSONAPIClient()
        response = client.get('/api/products/DOES-NOT-EXIST/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json()['error']['code'], 'NOT_FOUND')
        self.assertEqual(response.json()['error']['statusCode'], 404)


class AuditLogTests(TestCase):
    """Test create_audit_log helper"""

    def test_creates_entry(self):
        request = RequestFactory().get('/', REMOTE_ADDR='10.0.0.5')
        log = create_audit_log(
            request=request,
            action='stock_sale',
            model_name='Transaction',
            object_id=42,
            object_name='Widget',
            object_reference='TXN-1',
            changes={'quantity': 3},
        )
        self.assertIsNotNone(log)
        self.assertEqual(log.object_id, '42')
        self.assertEqual(log.ip_address, '10.0.0.5')
        self.assertEqual(log.changes, {'quantity': 3})

    def test_missing_fields_skipped(self):
        with self.assertLogs('stockflow.core.utils', level='WARNING'):
            self.assertIsNone(create_audit_log(action='stock_sale', model_name='Transaction'))
        self.assertEqual(AuditLog.objects.count(), 0)

    def test_forwarded_for_header_wins(self):
        request = RequestFactory().get('/', HTTP_X_FORWARDED_FOR='1.2.3.4, 5.6.7.8', REMOTE_ADDR='10.0.0.5')
        self.assertEqual(get_client_ip(request), '1.2.3.4')


class PaginationTests(TestCase):
    """Test list pagination block"""

    def setUp(self):
        self.client = JSONAPIClient()
        for i in range(7):
            TestDataFactory.create_product(product_id=f'P{i:03d}', name=f'Product {i}')

    def test_default_limit_is_five(self):
        response = self.client.get('/api/products/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertTrue(body['success'])
        self.assertEqual(len(body['data']), 5)
        self.assertEqual(body['pagination'], {'page': 1, 'limit': 5, 'total': 7, 'totalPages': 2})

    def test_second_page(self):
        body = self.client.get('/api/products/?page=2&limit=5').json()
        self.assertEqual(len(body['data']), 2)
        self.assertEqual(body['pagination']['page'], 2)

    def test_invalid_page_rejected(self):
        response = self.client.get('/api/products/?page=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.json()['error']['code'], 'VALIDATION_ERROR')


@override_settings(REPORTS_CACHE_TTL=60)
class ReportsCacheTests(TestCase):
    """Test cached_report and signal-driven invalidation"""

    def setUp(self):
        cache.clear()
        self.calls = 0

        @cached_report('test_report')
        def report(value):
            self.calls += 1
            return {'value': value, 'calls': self.calls}

        self.report = report

    def test_result_cached(self):
        self.assertEqual(self.report(1)['calls'], 1)
        self.assertEqual(self.report(1)['calls'], 1)
        self.assertEqual(self.report(2)['calls'], 2)

    def test_invalidate_bumps_generation(self):
        self.report(1)
        generation = get_reports_generation()
        invalidate_reports_cache()
        self.assertEqual(get_reports_generation(), generation + 1)
        self.assertEqual(self.report(1)['calls'], 2)

    def test_product_save_invalidates_after_commit(self):
        self.report(1)
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            TestDataFactory.create_product(price=Decimal('5.00'))
        self.assertEqual(len(callbacks), 1)
        self.assertEqual(self.report(1)['calls'], 2)

    def test_report_read_before_commit_is_not_served_after_commit(self):
        generation = get_reports_generation()
        with self.captureOnCommitCallbacks(execute=True):
            with transaction.atomic():
                TestDataFactory.create_product(price=Decimal('5.00'))
                # another request reading the report before the write commits
                self.assertEqual(get_reports_generation(), generation)
                self.assertEqual(self.report(1)['calls'], 1)
        self.assertEqual(get_reports_generation(), generation + 1)
        self.assertEqual(self.report(1)['calls'], 2)

    def test_rolled_back_write_does_not_invalidate(self):
        generation = get_reports_generation()
        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            try:
                with transaction.atomic():
                    TestDataFactory.create_product(price=Decimal('5.00'))
                    raise RuntimeError('abort')
            except RuntimeError:
                pass
        self.assertEqual(callbacks, [])
        self.assertEqual(get_reports_generation(), generation)

    @override_settings(REPORTS_CACHE_TTL=0)
    def test_zero_ttl_disables_cache(self):
        self.report(1)
        self.report(1)
        self.assertEqual(self.calls, 2)

    def test_make_cache_key_stable(self):
        self.assertEqual(make_cache_key('a', 1, b=2), make_cache_key('a', 1, b=2))
        self.assertNotEqual(make_cache_key('a', 1), make_cache_key('a', 2))


class HealthCheckTests(TestCase):
    def test_health(self):
        response = JSONAPIClient().get('/api/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.json(), {'status': 'healthy'})
