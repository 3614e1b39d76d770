# Generated manually for audit app

import django.core.serializers.json
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('members', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('table_name', models.CharField(choices=[('meals', 'Meals'), ('bazar', 'Bazar'), ('deposits', 'Deposits')], max_length=20)),
                ('action', models.CharField(choices=[('create', 'Create'), ('update', 'Update'), ('delete', 'Delete')], max_length=10)),
                ('row_id', models.CharField(blank=True, max_length=64)),
                ('actor_email', models.EmailField(blank=True, max_length=255)),
                ('before', models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True)),
                ('after', models.JSONField(blank=True, encoder=django.core.serializers.json.DjangoJSONEncoder, null=True)),
                ('source', models.CharField(blank=True, max_length=50)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('actor_member', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_entries', to='members.member')),
            ],
            options={
                'db_table': 'audit_logs',
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['table_name', 'action'], name='audit_table_action_idx'),
                    models.Index(fields=['created_at'], name='audit_created_idx'),
                ],
            },
        ),
    ]
