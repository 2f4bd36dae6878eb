# Initial migration for rostering app
from django.db import migrations, models
import django.core.validators
import django.db.models.deletion

class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='TeamRole',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.SlugField(max_length=40, unique=True)),
                ('label', models.CharField(max_length=80)),
                ('sort_order', models.PositiveSmallIntegerField(default=0)),
            ],
            options={
                'verbose_name': 'Team role',
                'verbose_name_plural': 'Team roles',
                'ordering': ['sort_order', 'name'],
            },
        ),
        migrations.CreateModel(
            name='Member',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(db_index=True, max_length=120)),
                ('email', models.EmailField(max_length=254, unique=True)),
                ('phone', models.CharField(blank=True, max_length=30, null=True)),
                ('app_role', models.CharField(choices=[('Admin', 'Admin'), ('Coordinator', 'Coordinator'), ('MusicCoordinator', 'Music coordinator'), ('WorshipLeader', 'Worship leader'), ('Musician', 'Musician')], db_index=True, default='Musician', max_length=20)),
                ('magic_token', models.CharField(max_length=64, unique=True)),
                ('is_active', models.BooleanField(db_index=True, default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('roles', models.ManyToManyField(blank=True, related_name='members', to='rostering.teamrole')),
            ],
            options={
                'verbose_name': 'Member',
                'verbose_name_plural': 'Members',
                'ordering': ['name'],
                'indexes': [models.Index(fields=['is_active', 'app_role'], name='member_active_role_idx')],
            },
        ),
        migrations.CreateModel(
            name='Song',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(db_index=True, max_length=200)),
                ('artist', models.CharField(blank=True, max_length=200)),
                ('is_active', models.BooleanField(default=True)),
            ],
            options={
                'verbose_name': 'Song',
                'verbose_name_plural': 'Songs',
                'ordering': ['title'],
            },
        ),
        migrations.CreateModel(
            name='ChordChart',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(max_length=8)),
                ('song', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='charts', to='rostering.song')),
            ],
            options={
                'verbose_name': 'Chord chart',
                'verbose_name_plural': 'Chord charts',
            },
        ),
        migrations.CreateModel(
            name='AvailabilityPeriod',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('label', models.CharField(max_length=120)),
                ('starts_on', models.DateField(db_index=True)),
                ('ends_on', models.DateField(db_index=True)),
                ('deadline', models.DateField(blank=True, null=True)),
                ('closed_at', models.DateTimeField(blank=True, db_index=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='rostering.member')),
            ],
            options={
                'verbose_name': 'Availability period',
                'verbose_name_plural': 'Availability periods',
                'ordering': ['-starts_on'],
                'indexes': [models.Index(fields=['closed_at', 'starts_on'], name='period_open_start_idx')],
            },
        ),
        migrations.CreateModel(
            name='AvailabilityResponse',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('notes', models.TextField(blank=True, default='')),
                ('submitted_at', models.DateTimeField(auto_now=True)),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='period_responses', to='rostering.member')),
                ('period', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='responses', to='rostering.availabilityperiod')),
                ('preferred_role', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='rostering.teamrole')),
            ],
            options={
                'verbose_name': 'Availability response',
                'verbose_name_plural': 'Availability responses',
                'constraints': [models.UniqueConstraint(fields=('period', 'member'), name='uniq_response_period_member')],
            },
        ),
        migrations.CreateModel(
            name='AvailabilityDate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField()),
                ('available', models.BooleanField(default=False)),
                ('response', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='dates', to='rostering.availabilityresponse')),
            ],
            options={
                'ordering': ['date'],
                'constraints': [models.UniqueConstraint(fields=('response', 'date'), name='uniq_response_date')],
            },
        ),
        migrations.CreateModel(
            name='MonthlyAvailability',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(db_index=True)),
                ('status', models.CharField(choices=[('AVAILABLE', 'Available'), ('UNAVAILABLE', 'Unavailable')], max_length=12)),
                ('notes', models.TextField(blank=True, default='')),
                ('submitted_at', models.DateTimeField(auto_now=True)),
                ('member', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='monthly_availability', to='rostering.member')),
                ('preferred_role', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='rostering.teamrole')),
            ],
            options={
                'verbose_name': 'Monthly availability',
                'verbose_name_plural': 'Monthly availability',
                'ordering': ['date'],
                'constraints': [models.UniqueConstraint(fields=('member', 'date'), name='uniq_monthly_member_date')],
            },
        ),
        migrations.CreateModel(
            name='RosterAssignment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('date', models.DateField(db_index=True)),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('LOCKED', 'Locked')], db_index=True, default='DRAFT', max_length=10)),
                ('assigned_at', models.DateTimeField(auto_now=True)),
                ('locked_at', models.DateTimeField(blank=True, null=True)),
                ('member', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='assignments', to='rostering.member')),
                ('role', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='assignments', to='rostering.teamrole')),
            ],
            options={
                'verbose_name': 'Roster assignment',
                'verbose_name_plural': 'Roster assignments',
                'ordering': ['date', 'role__sort_order'],
                'constraints': [models.UniqueConstraint(fields=('date', 'role'), name='uniq_roster_date_role')],
            },
        ),
        migrations.CreateModel(
            name='RosterNote',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('month', models.CharField(help_text='YYYY-MM', max_length=7, unique=True)),
                ('notes', models.TextField(blank=True, default='')),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'verbose_name': 'Roster note',
                'verbose_name_plural': 'Roster notes',
                'ordering': ['-month'],
            },
        ),
        migrations.CreateModel(
            name='SetlistSlot',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('sunday_date', models.DateField(db_index=True)),
                ('position', models.PositiveSmallIntegerField(validators=[django.core.validators.MinValueValidator(1)])),
                ('chosen_key', models.CharField(blank=True, max_length=8, null=True)),
                ('status', models.CharField(choices=[('DRAFT', 'Draft'), ('PUBLISHED', 'Published')], db_index=True, default='DRAFT', max_length=10)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='+', to='rostering.member')),
                ('song', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='slots', to='rostering.song')),
            ],
            options={
                'verbose_name': 'Setlist slot',
                'verbose_name_plural': 'Setlist slots',
                'ordering': ['sunday_date', 'position'],
                'constraints': [
                    models.UniqueConstraint(fields=('sunday_date', 'position'), name='uniq_setlist_date_position'),
                    models.UniqueConstraint(fields=('sunday_date', 'song'), name='uniq_setlist_date_song'),
                ],
            },
        ),
        migrations.CreateModel(
            name='AuditLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('actor_id', models.BigIntegerField(blank=True, null=True)),
                ('actor_name', models.CharField(max_length=120)),
                ('actor_role', models.CharField(max_length=20)),
                ('action', models.CharField(db_index=True, max_length=40)),
                ('entity_type', models.CharField(db_index=True, max_length=40)),
                ('entity_id', models.CharField(blank=True, default='', max_length=64)),
                ('summary', models.CharField(max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
            ],
            options={
                'verbose_name': 'Audit entry',
                'verbose_name_plural': 'Audit log',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['entity_type', 'entity_id'], name='audit_entity_idx')],
            },
        ),
    ]
