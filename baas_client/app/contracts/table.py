"""
Default contract table for the BaaS backend.

Every entry is explicit. Encryption differs per endpoint and per direction,
and that inconsistency is part of the backend's contract, so it is encoded
exactly as the backend behaves rather than normalized away.
"""

from typing import Dict, Tuple

from .models import (
    Attempt,
    Branch,
    EndpointContract,
    Encryption,
    ExtractField,
    FilterBy,
    GuardResult,
    IndexInto,
    OnMiss,
    OperationKind,
    ParseJsonString,
    Project,
    Wrap,
)

NONE = Encryption.NONE
SYMMETRIC = Encryption.SYMMETRIC
QUERY = OperationKind.QUERY
MUTATION = OperationKind.MUTATION

CUSTOMER = ("customer_id", "bps_id")
BASE_PARAMS = ("customer_id", "bps_id", "user_id")
PROCESS_PARAMS = BASE_PARAMS + ("sp_process_id",)
QUEUE_PARAMS = BASE_PARAMS + ("queue_id",)

# Queue ids grouped by the backend family that serves their listings
BAAS_QUEUES = ("qu10001", "qu10002", "qu10006", "qu10010")
DATA_EXTRACTION_QUEUES = ("qu10012",)
SMART_DATAENTRY_QUEUES = ("qu10003", "qu10004", "qu10011")
EXCEPTION_QUEUES = ("qu10013",)
DOC_UPLOAD_QUEUES = ("qu10015",)


def _queue_routes(baas: str, data_extraction: str, smart_dataentry: str,
                  exceptions: str, doc_upload: str) -> Dict[str, str]:
    """Map every known queue id to the path of its backend family."""
    routes = {}
    for queues, path in (
        (BAAS_QUEUES, baas),
        (DATA_EXTRACTION_QUEUES, data_extraction),
        (SMART_DATAENTRY_QUEUES, smart_dataentry),
        (EXCEPTION_QUEUES, exceptions),
        (DOC_UPLOAD_QUEUES, doc_upload),
    ):
        for queue_id in queues:
            routes[queue_id] = path
    return routes


RECENT_ROUTES = _queue_routes(
    "/baasHome/loadAppRecent_baas",
    "/baasHome/loadAppRecent_data_Extraction",
    "/baasHome/loadAppRecent_smart_dataentry",
    "/baasHome/loadExceptionsAppRecent",
    "/baasHome/loadDocUploadRecents",
)
PAST_DUE_ROUTES = _queue_routes(
    "/baasHome/loadAppPastDue_baas",
    "/baasHome/loadAppPastDue_data_Extraction",
    "/baasHome/loadAppPastDue_smart_dataentry",
    "/baasHome/loadExceptionsAppPastDue",
    "/baasHome/loadDocUploadPastDue",
)
SEARCH_RECENT_ROUTES = _queue_routes(
    "/baasHome/search_app_recent_baas",
    "/baasHome/search_app_recent_data_Extraction",
    "/baasHome/search_app_recent_smart_dataentry",
    "/baasHome/loadExceptionsSearchAppRecent",
    "/baasHome/loadSerachDocUploadRecents",
)
SEARCH_PAST_DUE_ROUTES = _queue_routes(
    "/baasHome/search_app_pastDue_baas",
    "/baasHome/search_app_pastDue_data_extraction",
    "/baasHome/search_app_pastDue_smart_dataentry",
    "/baasHome/loadExceptionsSearchAppPastDue",
    "/baasHome/loadSerachDocUploadPastDue",
)

# Rows of [[{...}]] replies are returned as the bare object when present
FIRST_ROW = (IndexInto((0, 0)),)


def _workflow_listing(prefix: str) -> Tuple:
    """`[workflows, counts]` pipeline shared by the task workflow listings."""
    return (
        GuardResult(path=(0, 0, "result"), expected="Success", replacement=[[]]),
        Project(branches=(
            Branch(steps=(
                IndexInto((0,)),
                ExtractField(f"{prefix}_TasksWorkflows_json_data"),
                ParseJsonString(),
            )),
            Branch(steps=(
                IndexInto((1, 0)),
                ExtractField(f"{prefix}_TasksWorkflows_Counts_data"),
                ParseJsonString(),
            ), default=[]),
        )),
    )


APPLICATION_SHELL = (
    EndpointContract(
        operation_id="getCorpDetails",
        path="/baasContent/corp_details",
        provides_tags={"Corp"},
        required_params=("companyID",),
    ),
    EndpointContract(
        operation_id="loadBusinessConfig",
        path="/baasHome/load_business_config",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        invalidates_tags={"Config"},
        kind=MUTATION,
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="loadSettings",
        path="/baasHome/loadSetting",
        provides_tags={"Settings"},
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="fetchTimezoneDetails",
        path="/baasHome/fetch_TimeZone_Details",
        kind=MUTATION,
        required_params=("clientTimeZone",),
    ),
    EndpointContract(
        operation_id="updateTimezoneDetails",
        path="/baasHome/update_TimeZone_Details",
        kind=MUTATION,
        required_params=CUSTOMER + ("dataJson",),
    ),
)

BUSINESS_HOME = (
    EndpointContract(
        operation_id="getTasksWorkflowsCount",
        path="/baasHome/tasksWorkflowsCount",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        unwrap_pipeline=(
            # Without merged_json the backend payload is passed through whole
            Attempt((
                IndexInto((0, 0)),
                ExtractField("merged_json"),
                ParseJsonString(),
                ExtractField("recent_TasksWorkflows_Counts_data"),
                ParseJsonString(),
            ), on_miss=OnMiss.RETURN_BODY),
            Attempt((IndexInto((0,)), ExtractField("counts")), on_miss=OnMiss.KEEP_INPUT),
            Wrap(depth=2),
        ),
        provides_tags={"Dashboard", "Tasks", "Workflows"},
        required_params=BASE_PARAMS,
    ),
    # Same backend path as loadDisplayTimeForInbox but called in plain JSON.
    EndpointContract(
        operation_id="getDisplayTimeSettings",
        path="/baasHome/loadDisplayTimeForInbox",
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="loadDisplayTimeForInbox",
        path="/baasHome/loadDisplayTimeForInbox",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        unwrap_pipeline=(IndexInto((0, 0)), ExtractField("display_time")),
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="getYTDPending30_60_90",
        path="/baasHome/load_YTD_Pending30_60_90",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        provides_tags={"YTD"},
        required_params=PROCESS_PARAMS,
    ),
    EndpointContract(
        operation_id="getYTDPending",
        path="/baasHome/load_YTD_Pending",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        provides_tags={"YTD"},
        required_params=PROCESS_PARAMS,
    ),
    EndpointContract(
        operation_id="getYTDBusinessExceptions",
        path="/baasHome/load_YTD_PendingBusinessExceptions",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        provides_tags={"Exceptions"},
        required_params=PROCESS_PARAMS,
    ),
    EndpointContract(
        operation_id="searchYTDBusinessExceptions",
        path="/baasHome/search_YTD_PendingBusinessExceptions",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        invalidates_tags={"Exceptions"},
        kind=MUTATION,
        required_params=PROCESS_PARAMS,
    ),
    # Request encrypted, response returned in plain JSON.
    EndpointContract(
        operation_id="getExceptionSupplierCount",
        path="/baasHome/fetch_exception_supplier_count",
        request_encryption=SYMMETRIC,
        response_encryption=NONE,
        provides_tags={"Exceptions"},
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="getExceptionBySupplier",
        path="/baasHome/fetch_exception_supplier_count_by_Supplier",
        request_encryption=SYMMETRIC,
        response_encryption=NONE,
        provides_tags={"Exceptions"},
        required_params=BASE_PARAMS + ("supplier_id",),
    ),
    EndpointContract(
        operation_id="getExceptionSupplierOnlyCount",
        path="/baasHome/fetch_exception_supplier_only_count",
        request_encryption=SYMMETRIC,
        response_encryption=NONE,
        provides_tags={"Exceptions"},
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="getBusinessConfig",
        path="/baasHome/load_business_config",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        provides_tags={"Config"},
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="getBatchInventoryOverview",
        path="/baasHome/BatchInventoryYTDOverView",
        unwrap_pipeline=(IndexInto((0, 0)),),
        provides_tags={"Inventory"},
        required_params=PROCESS_PARAMS,
    ),
    EndpointContract(
        operation_id="getBatchInventory30_60_90",
        path="/baasHome/InventoryYTD306090",
        provides_tags={"Inventory"},
        required_params=PROCESS_PARAMS,
    ),
    EndpointContract(
        operation_id="getInvoiceInventoryOverview",
        path="/baasHome/InvoiceInventoryYTDOverView",
        provides_tags={"Inventory"},
        required_params=PROCESS_PARAMS,
    ),
    EndpointContract(
        operation_id="getAuditData30_60_90",
        path="/baasHome/fetch_audit_into_bihourly_sp_30_60_90_baas",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        provides_tags={"Insights"},
        required_params=PROCESS_PARAMS,
    ),
    EndpointContract(
        operation_id="searchAuditData30_60_90",
        path="/baasHome/search_audit_into_bihourly_sp_30_60_90_baas",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        invalidates_tags={"Insights"},
        kind=MUTATION,
        required_params=PROCESS_PARAMS,
    ),
    EndpointContract(
        operation_id="searchInsightsCustom",
        path="/baasHome/search_insights_custom_for_input",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        invalidates_tags={"Insights"},
        kind=MUTATION,
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="loadInboxSearchConfig",
        path="/baasHome/load_inbox_serachConfig",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        unwrap_pipeline=(
            IndexInto((0, 0)),
            ExtractField("search_inbox_config"),
            ParseJsonString(),
            FilterBy(field="isActionEnabled", equals=True),
        ),
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="getAgentData",
        path="/baasHome/loadAgent",
        provides_tags={"Agents"},
        required_params=BASE_PARAMS,
    ),
)

BUSINESS_TASKS = (
    EndpointContract(
        operation_id="getProcessedAgingCount",
        path="/baasHome/processedAgingCount",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        provides_tags={"Processed"},
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="getProcessedQueueData",
        path="/baasHome/load_processedQMenuData",
        provides_tags={"Processed"},
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="searchProcessedQueueData",
        path="/baasHome/load_search_processedQMenuData",
        invalidates_tags={"Processed"},
        kind=MUTATION,
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="getRecentWorkflows",
        path="/baasHome/Tasks_RecentWorkflows",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        unwrap_pipeline=_workflow_listing("recent"),
        provides_tags={"Recent", "Workflows"},
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="searchRecentWorkflows",
        path="/baasHome/searchRecentForInput",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        invalidates_tags={"Recent"},
        kind=MUTATION,
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="getPastDueCount",
        path="/baasHome/past_due_count_tasks",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        provides_tags={"PastDue"},
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="getPastDueWorkflows",
        path="/baasHome/Tasks_PastDueWorkflows",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        unwrap_pipeline=_workflow_listing("pastDue"),
        provides_tags={"PastDue", "Workflows"},
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="searchPastDueTasks",
        path="/baasHome/search_pastDue_Tasks",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        invalidates_tags={"PastDue"},
        kind=MUTATION,
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="getCustomWorkflows",
        path="/baasHome/Tasks_CustomWorkflows",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        unwrap_pipeline=_workflow_listing("custom"),
        provides_tags={"Workflows"},
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="searchCustomTasks",
        path="/baasHome/search_custom_for_tasks",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
        required_params=BASE_PARAMS,
    ),
)

APP_SETTINGS = (
    EndpointContract(
        operation_id="fetchSettingData",
        path="/baasHome/fetch_setting_data",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        unwrap_pipeline=(IndexInto((0, 0)),),
        provides_tags={"SettingConfig"},
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="updateInfoSetting",
        path="/baasHome/update_info_settingConfig",
        invalidates_tags={"SettingConfig"},
        kind=MUTATION,
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="settingDateFormats",
        path="/baasHome/settingDateFormats",
        unwrap_pipeline=(IndexInto((0, 0)), ExtractField("date_formats"), ParseJsonString()),
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="saveCorporationDetails",
        path="/baasHome/saveCorporationDetailsConfig",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="existingUsers",
        path="/baasContent/existingUsers",
        provides_tags={"ExistingUsers"},
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="loadReviewUsers",
        path="/baasContent/load_retrive_and_review_exceldata_user",
        provides_tags={"ReviewUsers"},
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="usersProcess",
        path="/baasContent/usersProcess",
        invalidates_tags={"ExistingUsers"},
        kind=MUTATION,
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="deleteUsers",
        path="/baasContent/deleteExistingUsers",
        invalidates_tags={"ExistingUsers", "ReviewUsers"},
        kind=MUTATION,
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="storeRemoteKey",
        path="/baasHome/storeRemoteKeySecure",
        kind=MUTATION,
        required_params=CUSTOMER + ("user_login_id", "secretKey"),
    ),
    EndpointContract(
        operation_id="validateExcel",
        path="/baasContent/validate_Excels_for_user",
        invalidates_tags={"ReviewUsers"},
        kind=MUTATION,
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="readExcelForUser",
        path="/baasContent/read_Excels_for_User",
        invalidates_tags={"ReviewUsers"},
        kind=MUTATION,
        required_params=CUSTOMER + ("file_name", "file_content"),
    ),
    EndpointContract(
        operation_id="userFieldResources",
        path="/baasContent/user_fields_resources",
        provides_tags={"UserFieldResources"},
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="grantAccessUser",
        path="/baasContent/grant_access_user",
        kind=MUTATION,
        required_params=("selectedIds",),
    ),
)

AUTHENTICATION = (
    EndpointContract(
        operation_id="signIn",
        path="/baasHome/signIn",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        invalidates_tags={"Auth"},
        kind=MUTATION,
        required_params=("username", "password"),
        encrypted_fields=("password",),
    ),
    EndpointContract(
        operation_id="setLoginStatus",
        path="/baasHome/setLoginStatus",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
        required_params=("user_login_id",),
    ),
    EndpointContract(
        operation_id="validateOnbaseUser",
        path="/baasHome/validateOnbaseUser",
        kind=MUTATION,
        required_params=("username",),
    ),
    EndpointContract(
        operation_id="checkMfa",
        path="/baasHome/checkMFA",
        kind=MUTATION,
        required_params=("username",),
    ),
    EndpointContract(
        operation_id="getQrCode",
        path="/baasHome/getQRcode",
        kind=MUTATION,
        required_params=("username",),
    ),
    EndpointContract(
        operation_id="verifyCode",
        path="/baasHome/verifyCode",
        kind=MUTATION,
        required_params=("totpcode", "key"),
    ),
    # Plain JSON body, but the password inside it is still encrypted.
    EndpointContract(
        operation_id="setPassword",
        path="/baasHome/setPassword",
        kind=MUTATION,
        required_params=("userName", "password"),
        encrypted_fields=("password",),
    ),
    EndpointContract(
        operation_id="requestOtpForForgotPassword",
        path="/baasHome/otp_to_recover_password",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
        required_params=("user_login_id",),
    ),
    EndpointContract(
        operation_id="verifyOtpToRecover",
        path="/baasHome/verify_otp_to_proceed",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
        required_params=("user_login_id", "otp_value"),
    ),
    EndpointContract(
        operation_id="updatePassword",
        path="/baasHome/update_user_profile",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
        required_params=("user_login_id", "password"),
        encrypted_fields=("password",),
    ),
    EndpointContract(
        operation_id="validateMailId",
        path="/baasHome/vaildMailID",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="accountAccessAttempts",
        path="/baasHome/AccountAccessAttempts",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="signOut",
        path="/baasHome/signOutFromOnebase",
        request_encryption=SYMMETRIC,
        response_encryption=NONE,
        invalidates_tags={"Auth", "User"},
        kind=MUTATION,
        required_params=("user_login_id",),
    ),
    EndpointContract(
        operation_id="validateUser",
        path="/baasHome/validateUser",
        kind=MUTATION,
        required_params=("username",),
    ),
    EndpointContract(
        operation_id="forgotUsername",
        path="/baasHome/forgotUsername",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
        required_params=("forgetuserid",),
    ),
)

BUSINESS_APPS = (
    EndpointContract(
        operation_id="loadBuQueueActions",
        path="/baasHome/load_bu_queue_actions",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        unwrap_pipeline=(GuardResult(path=(0, 0, "result"), expected="Success", replacement=[]),),
        provides_tags={"QueueActions"},
        required_params=BASE_PARAMS,
    ),
    EndpointContract(
        operation_id="loadAppRecentWorkflows",
        path=RECENT_ROUTES[BAAS_QUEUES[0]],
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        provides_tags={"Workflows"},
        required_params=QUEUE_PARAMS,
        route_param="queue_id",
        path_variants=RECENT_ROUTES,
    ),
    EndpointContract(
        operation_id="loadAppPastDueWorkflows",
        path=PAST_DUE_ROUTES[BAAS_QUEUES[0]],
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        provides_tags={"Workflows"},
        required_params=QUEUE_PARAMS,
        route_param="queue_id",
        path_variants=PAST_DUE_ROUTES,
    ),
    EndpointContract(
        operation_id="loadAppCustomWorkflows",
        path="/baasHome/loadCustomTasks_Workflows",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        provides_tags={"Workflows"},
        required_params=QUEUE_PARAMS + ("startDateTime", "endDateTime"),
    ),
    EndpointContract(
        operation_id="searchAppRecentWorkflows",
        path=SEARCH_RECENT_ROUTES[BAAS_QUEUES[0]],
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
        required_params=QUEUE_PARAMS,
        route_param="queue_id",
        path_variants=SEARCH_RECENT_ROUTES,
    ),
    # Unknown queues fall through to the document upload search here.
    EndpointContract(
        operation_id="searchAppPastDueWorkflows",
        path=SEARCH_PAST_DUE_ROUTES[DOC_UPLOAD_QUEUES[0]],
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
        required_params=QUEUE_PARAMS,
        route_param="queue_id",
        path_variants=SEARCH_PAST_DUE_ROUTES,
    ),
)

# Starter endpoints are plain JSON in both directions except the menu status call.
BUSINESS_STARTER = (
    EndpointContract(
        operation_id="loadQueueMenuStatus",
        path="/baasHome/load_queue_menu_status",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="loadCustomerDashboard",
        path="/baasHome/loadCustomerPerformanceDashboard",
        provides_tags={"BusinessStarter"},
        required_params=("username",),
    ),
    EndpointContract(
        operation_id="loadAdminSettings",
        path="/baasHome/onebaseAdminSetting",
        provides_tags={"AdminSettings"},
        required_params=("username",),
    ),
    EndpointContract(
        operation_id="loadAdminSettingsEnableDisable",
        path="/baasHome/AdminSettingsEnableDisable",
        provides_tags={"Queue"},
    ),
    EndpointContract(
        operation_id="enableDisableQueueUserMenu",
        path="/baasHome/enableOrDisableQUserMenuService",
        invalidates_tags={"Queue"},
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="enableDisableMenu",
        path="/baasHome/enableOrDisableMenu",
        invalidates_tags={"Queue"},
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="loadAdminTechops",
        path="/baasHome/onebaseAdminTechops",
        provides_tags={"TechOps"},
        required_params=("username",),
    ),
    EndpointContract(
        operation_id="loadTechopsInbox",
        path="/baasHome/onebaseAdminTechopsInbox",
        provides_tags={"TechOps"},
    ),
)

USER_PROFILE = (
    EndpointContract(
        operation_id="updateUserProfile",
        path="/baasHome/update_user_profile",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        invalidates_tags={"UserProfile"},
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="requestOtpForPasswordChange",
        path="/baasHome/otp_to_recover_password",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
        required_params=("user_login_id",),
    ),
    EndpointContract(
        operation_id="verifyOtpForProfileUpdate",
        path="/baasHome/verify_otp_to_proceed",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
        required_params=("user_login_id", "otp_value"),
    ),
    EndpointContract(
        operation_id="updateUserActivityLogging",
        path="/baasHome/updateUserActivitesLogging",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
    ),
)

BUSINESS_CONTENT = (
    EndpointContract(
        operation_id="getDINHistory",
        path="/baasContent/load_din_history",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        provides_tags={"DinHistory"},
        required_params=BASE_PARAMS + ("din_number",),
    ),
    EndpointContract(
        operation_id="loadTransactionMediaList",
        path="/baasContent/load_transaction_media_list",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        provides_tags={"TransactionMedia"},
        required_params=CUSTOMER,
    ),
    EndpointContract(
        operation_id="startWorkflow",
        path="/baasContent/startWorkflow",
        invalidates_tags={"TransactionMedia", "DinHistory"},
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="loadUpdateDataJson",
        path="/baasContent/loadUpdateDataJson",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        unwrap_pipeline=FIRST_ROW,
        invalidates_tags={"IXSDData"},
        kind=MUTATION,
    ),
    # An empty queue answers [[]]; the caller gets None.
    EndpointContract(
        operation_id="checkForNewDIN",
        path="/baasContent/checkForNewDIN",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        unwrap_pipeline=(Attempt(FIRST_ROW, on_miss=OnMiss.DEFAULT, default=None),),
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="saveIXSDJSON",
        path="/baasContent/saveIXSDJSON",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        invalidates_tags={"IXSDData"},
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="downloadSourceFile",
        path="/baasContent/download_source_file",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        unwrap_pipeline=FIRST_ROW,
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="generateExcelOutput",
        path="/baasContent/generateExcelOutput",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        unwrap_pipeline=FIRST_ROW,
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="changeMediaPage",
        path="/baasContent/changeMediaPage",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        unwrap_pipeline=FIRST_ROW,
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="setNewBotCamp",
        path="/baasContent/setNewBotCamp",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="setInvoiceCoding",
        path="/baasContent/setInvoiceCoding",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="sendExceptionNotification",
        path="/baasContent/sendExceptionNotification",
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="fieldLevelAudit",
        path="/baasContent/fieldLevelAudit",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="loadFormAudit",
        path="/baasContent/loadFormAudit",
        request_encryption=SYMMETRIC,
        response_encryption=SYMMETRIC,
        kind=MUTATION,
    ),
    EndpointContract(
        operation_id="infordata",
        path="/baasContent/infordata",
        kind=MUTATION,
    ),
)

DEFAULT_CONTRACTS: Tuple[EndpointContract, ...] = (
    APPLICATION_SHELL
    + BUSINESS_HOME
    + BUSINESS_TASKS
    + BUSINESS_APPS
    + BUSINESS_STARTER
    + APP_SETTINGS
    + AUTHENTICATION
    + USER_PROFILE
    + BUSINESS_CONTENT
)
