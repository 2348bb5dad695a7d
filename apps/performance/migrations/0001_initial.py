from django.db import migrations, models
import django.db.models.deletion
import django.utils.timezone

GOAL_PRIVACY_CHOICES = [
    ('only_creator', 'Only the creator'),
    ('only_creator_and_owner', 'Creator and owner'),
    ('only_creator_owner_and_managers', 'Creator, owner and managers'),
    ('everyone_in_company', 'Everyone in the company'),
]

OBSERVATION_PRIVACY_CHOICES = [
    ('observer_only', 'Just for me (journal)'),
    ('observed_only', 'Observer and observees'),
    ('managers_only', 'Observer and observee managers'),
    ('observed_and_managers', 'Observees and their managers'),
    ('public_to_company', 'Everyone in the company'),
    ('public_to_world', 'Public'),
]


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('employees', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='Goal',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('title', models.CharField(max_length=255)),
                ('description', models.TextField(blank=True)),
                ('goal_type', models.CharField(choices=[('inspirational_objective', 'Inspirational objective'), ('qualitative_key_result', 'Qualitative key result'), ('quantitative_key_result', 'Quantitative key result'), ('stepping_stone_activity', 'Stepping stone activity')], default='inspirational_objective', max_length=40)),
                ('privacy_level', models.CharField(choices=GOAL_PRIVACY_CHOICES, default='only_creator_owner_and_managers', max_length=40)),
                ('most_likely_target_date', models.DateField(blank=True, null=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='goals', to='core.organization')),
                ('creator', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='created_goals', to='employees.person')),
                ('owner_organization', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='owned_goals', to='core.organization')),
                ('owner_person', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='owned_goals', to='employees.person')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['company', 'privacy_level'], name='goal_company_privacy_idx')],
            },
        ),
        migrations.CreateModel(
            name='GoalLink',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('link_type', models.CharField(choices=[('this_is_key_result_of_that', 'Is a key result of'), ('this_supports_that', 'Supports'), ('this_blocks_that', 'Blocks')], default='this_supports_that', max_length=40)),
                ('child', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='incoming_links', to='performance.goal')),
                ('parent', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='outgoing_links', to='performance.goal')),
            ],
            options={
                'ordering': ['created_at'],
                'constraints': [models.UniqueConstraint(fields=('parent', 'child', 'link_type'), name='uq_goal_link_parent_child_type')],
            },
        ),
        migrations.CreateModel(
            name='Observation',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('story', models.TextField()),
                ('privacy_level', models.CharField(choices=OBSERVATION_PRIVACY_CHOICES, default='observed_only', max_length=30)),
                ('observed_at', models.DateField(default=django.utils.timezone.localdate)),
                ('published_at', models.DateTimeField(blank=True, null=True)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='observations', to='core.organization')),
                ('observer', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='observations_made', to='employees.person')),
            ],
            options={
                'ordering': ['-observed_at', '-created_at'],
                'indexes': [models.Index(fields=['company', 'privacy_level', 'published_at'], name='obs_company_privacy_idx')],
            },
        ),
        migrations.CreateModel(
            name='Observee',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('observation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='observees', to='performance.observation')),
                ('teammate', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='observed_in', to='employees.teammate')),
            ],
            options={
                'constraints': [models.UniqueConstraint(fields=('observation', 'teammate'), name='uq_observee_observation_teammate')],
            },
        ),
        migrations.CreateModel(
            name='ObservationRating',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('subject', models.CharField(help_text='Ability, assignment or aspiration being rated', max_length=255)),
                ('rating', models.CharField(choices=[('strongly_agree', 'Exceptional'), ('agree', 'Good'), ('na', 'N/A'), ('disagree', 'Opportunity for improvement'), ('strongly_disagree', 'Major concern')], default='na', max_length=20)),
                ('observation', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='ratings', to='performance.observation')),
            ],
            options={
                'ordering': ['created_at'],
            },
        ),
        migrations.CreateModel(
            name='Assignment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('title', models.CharField(max_length=255)),
                ('tagline', models.CharField(blank=True, max_length=255)),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='assignments', to='core.organization')),
            ],
            options={
                'ordering': ['title'],
            },
        ),
        migrations.CreateModel(
            name='CheckIn',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('check_in_started_on', models.DateField(default=django.utils.timezone.localdate)),
                ('notes', models.TextField(blank=True)),
                ('author', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='authored_check_ins', to='employees.person')),
                ('company', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='check_ins', to='core.organization')),
                ('subject', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='check_ins', to='employees.person')),
            ],
            options={
                'ordering': ['-check_in_started_on'],
            },
        ),
    ]
