from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Person',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('first_name', models.CharField(max_length=100)),
                ('last_name', models.CharField(blank=True, max_length=100)),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('is_global_admin', models.BooleanField(default=False, help_text='Platform operator with access to every organization')),
                ('user', models.OneToOneField(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='person', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['last_name', 'first_name'],
            },
        ),
        migrations.CreateModel(
            name='Teammate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('can_manage_employment', models.BooleanField(default=False)),
                ('can_create_employment', models.BooleanField(default=False)),
                ('can_manage_maap', models.BooleanField(default=False)),
                ('first_employed_at', models.DateTimeField(blank=True, null=True)),
                ('last_terminated_at', models.DateTimeField(blank=True, null=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='teammates', to='core.organization')),
                ('person', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='teammates', to='employees.person')),
            ],
            options={
                'indexes': [models.Index(fields=['organization', 'last_terminated_at'], name='teammate_org_terminated_idx')],
                'constraints': [models.UniqueConstraint(fields=('person', 'organization'), name='uq_teammate_person_organization')],
            },
        ),
        migrations.CreateModel(
            name='EmploymentTenure',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('position', models.CharField(blank=True, max_length=150)),
                ('started_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('ended_at', models.DateTimeField(blank=True, null=True)),
                ('manager', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='managed_tenures', to='employees.person')),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='employment_tenures', to='core.organization')),
                ('person', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='employment_tenures', to='employees.person')),
            ],
            options={
                'ordering': ['-started_at'],
                'indexes': [
                    models.Index(fields=['organization', 'ended_at'], name='tenure_org_ended_idx'),
                    models.Index(fields=['manager', 'ended_at'], name='tenure_manager_ended_idx'),
                ],
                'constraints': [
                    models.UniqueConstraint(
                        condition=models.Q(('ended_at__isnull', True)),
                        fields=('person', 'organization'),
                        name='uq_active_tenure_person_organization',
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name='HierarchyAnomaly',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('kind', models.CharField(choices=[('manager_cycle', 'Manager cycle')], default='manager_cycle', max_length=30)),
                ('person_ids', models.JSONField(default=list)),
                ('fingerprint', models.CharField(max_length=255)),
                ('resolved_at', models.DateTimeField(blank=True, null=True)),
                ('organization', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='hierarchy_anomalies', to='core.organization')),
            ],
            options={
                'ordering': ['-created_at'],
                'constraints': [
                    models.UniqueConstraint(
                        condition=models.Q(('resolved_at__isnull', True)),
                        fields=('organization', 'fingerprint'),
                        name='uq_open_anomaly_fingerprint',
                    ),
                ],
            },
        ),
    ]
