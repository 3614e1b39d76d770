# Generated manually for ledger app

import uuid
from decimal import Decimal
from django.core.validators import MinValueValidator
from django.db import migrations, models
import django.db.models.deletion
import apps.ledger.models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('members', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='MealRecord',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('date', models.DateField()),
                ('meal_count', models.DecimalField(decimal_places=1, max_digits=5, validators=[MinValueValidator(Decimal('0')), apps.ledger.models.validate_half_meal_step])),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='meals', to='members.member')),
            ],
            options={
                'db_table': 'meals',
                'ordering': ['-date', '-created_at'],
                'indexes': [
                    models.Index(fields=['member', 'date'], name='meals_member_date_idx'),
                    models.Index(fields=['date'], name='meals_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='DepositRecord',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=10)),
                ('date', models.DateField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='deposits', to='members.member')),
            ],
            options={
                'db_table': 'deposits',
                'ordering': ['-date', '-created_at'],
                'indexes': [
                    models.Index(fields=['member', 'date'], name='deposits_member_date_idx'),
                    models.Index(fields=['date'], name='deposits_date_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='BazarRecord',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('item_name', models.CharField(max_length=200)),
                ('cost', models.DecimalField(decimal_places=2, max_digits=10, validators=[MinValueValidator(Decimal('0'))])),
                ('date', models.DateField()),
                ('paid_from', models.CharField(choices=[('box', 'Meal box'), ('user', 'Own pocket')], default='box', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('linked_deposit', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='bazar_source', to='ledger.depositrecord')),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='bazar_records', to='members.member')),
            ],
            options={
                'db_table': 'bazar',
                'ordering': ['-date', '-created_at'],
                'indexes': [
                    models.Index(fields=['member', 'date'], name='bazar_member_date_idx'),
                    models.Index(fields=['date'], name='bazar_date_idx'),
                ],
            },
        ),
    ]
