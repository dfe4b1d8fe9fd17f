from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
    ]

    operations = [
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('action', models.CharField(choices=[('create', 'Create'), ('update', 'Update'), ('delete', 'Delete'), ('stock_purchase', 'Stock Added (Purchase)'), ('stock_sale', 'Stock Removed (Sale)'), ('transaction_update', 'Transaction Updated'), ('transaction_delete', 'Transaction Deleted')], max_length=50)),
                ('model_name', models.CharField(max_length=100)),
                ('object_id', models.CharField(max_length=100)),
                ('object_name', models.CharField(blank=True, help_text='Human-readable name of the object (e.g., product name)', max_length=255, null=True)),
                ('object_reference', models.CharField(blank=True, help_text='Reference identifier (e.g., transaction id, product id)', max_length=255, null=True)),
                ('changes', models.JSONField(blank=True, default=dict)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'db_table': 'audit_logs',
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['-created_at'], name='idx_audit_created'),
                    models.Index(fields=['action'], name='idx_audit_action'),
                    models.Index(fields=['object_reference'], name='idx_audit_reference'),
                ],
            },
        ),
    ]
